"""Base classes for bugcheck post-processors."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, List, Sequence

# argv for one debugger invocation; never run through a shell
CommandSpec = List[str]

CommandGenerator = Callable[[Path, Path, Sequence[str]], CommandSpec]


class BasePostProcessor(ABC):
    """Base class for bugcheck-specific follow-up commands."""

    # Post-processor metadata (override in subclasses)
    code: str = ""
    description: str = "Base post-processor"
    source: str = "builtin"

    @abstractmethod
    def generate_command(self, debugger_path: Path, dump_path: Path, args: Sequence[str]) -> CommandSpec:
        """Build the follow-up debugger command.

        Args:
            debugger_path: Path to the debugger executable
            dump_path: Dump being analyzed
            args: Bugcheck arguments (index 0 is Arg1)

        Returns:
            Command to execute
        """
        pass

    def describe(self) -> Dict[str, str]:
        return {
            "code": self.code,
            "description": self.description,
            "source": self.source,
        }


class FunctionPostProcessor(BasePostProcessor):
    """Post-processor backed by a plain ``generate_command`` function."""

    def __init__(self, code: str, generator: CommandGenerator, description: str = "", source: str = "builtin"):
        self.code = code
        self.description = description or f"Post-processing for bugcheck {code}"
        self.source = source
        self._generator = generator

    def generate_command(self, debugger_path: Path, dump_path: Path, args: Sequence[str]) -> CommandSpec:
        return list(self._generator(debugger_path, dump_path, args))


def arg_or_empty(args: Sequence[str], index: int) -> str:
    """Return ``args[index]`` or an empty string when the report had fewer arguments."""
    return args[index] if index < len(args) else ""
