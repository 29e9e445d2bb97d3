"""Registry mapping bugcheck codes to post-processors."""

import importlib.util
import logging
import os
from pathlib import Path
from typing import Dict, List

from bugcheck_analyzer.core.debugger import DebuggerInvoker
from bugcheck_analyzer.errors import InvocationError, PostProcessExecutionError
from bugcheck_analyzer.logging_utils import LOGGER_NAME, RequestLogger
from bugcheck_analyzer.parsing.bugcheck import normalize_bugcheck_code
from bugcheck_analyzer.postprocess.base import BasePostProcessor, FunctionPostProcessor
from bugcheck_analyzer.records import AnalysisRecord, ClassifiedReport, ErrorDescription, PostStatus

logger = logging.getLogger(f"{LOGGER_NAME}.postprocess")

BUILTIN_DIR = Path(__file__).resolve().parent.parent / "postprocessors"


class PostProcessorRegistry:
    """Registry for bugcheck post-processors, keyed by normalized bugcheck code."""

    def __init__(self):
        """Initialize the registry."""
        self._processors: Dict[str, BasePostProcessor] = {}

    def register(self, processor: BasePostProcessor) -> None:
        """Register a post-processor, replacing any existing one for the same code."""
        key = normalize_bugcheck_code(processor.code)
        if not key:
            raise ValueError(f"Post-processor {processor!r} has no bugcheck code")
        if key in self._processors:
            logger.debug("Replacing post-processor for bugcheck %s", key)
        self._processors[key] = processor

    def get(self, code: str | None) -> BasePostProcessor | None:
        """Get the post-processor for a bugcheck code, or None."""
        key = normalize_bugcheck_code(code)
        if key is None:
            return None
        return self._processors.get(key)

    def codes(self) -> List[str]:
        return sorted(self._processors)

    def list_processors(self) -> List[Dict[str, str]]:
        """List all registered post-processors."""
        return [self._processors[key].describe() for key in self.codes()]

    def __contains__(self, code: str) -> bool:
        return self.get(code) is not None

    def __len__(self) -> int:
        return len(self._processors)

    def discover(self, directory: Path, source: str = "builtin") -> int:
        """Load every post-processor module in a directory.

        The file stem is the bugcheck code (``9f.py`` handles bugcheck 0x9F).
        Each module must define ``generate_command(debugger_path, dump_path, args)``
        and may define ``DESCRIPTION``. Files starting with ``_`` are skipped.

        Args:
            directory: Directory to scan
            source: Label shown when listing processors

        Returns:
            Number of post-processors registered
        """
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("Post-processor directory not found: %s", directory)
            return 0

        loaded = 0
        for module_path in sorted(directory.glob("*.py")):
            if module_path.name.startswith("_"):
                continue
            processor = load_post_processor(module_path, source=source)
            if processor is not None:
                self.register(processor)
                loaded += 1
        logger.debug("Loaded %d post-processor(s) from %s", loaded, directory)
        return loaded

    async def apply(self, report: ClassifiedReport, invoker: DebuggerInvoker, log: RequestLogger) -> AnalysisRecord:
        """Run post-processing for one report (see ``apply_post_processing``)."""
        return await apply_post_processing(report, invoker, self, log)


def load_post_processor(module_path: Path, source: str = "builtin") -> BasePostProcessor | None:
    """Load one post-processor module from a file.

    Returns:
        The post-processor, or None if the module has no ``generate_command``
    """
    code = module_path.stem.lower()
    spec = importlib.util.spec_from_file_location(f"bugcheck_analyzer.postprocessors._bugcheck_{code}", module_path)
    if spec is None or spec.loader is None:
        logger.warning("Could not load post-processor from %s", module_path)
        return None

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        logger.error("Error loading post-processor from %s: %s", module_path, e)
        return None

    generator = getattr(module, "generate_command", None)
    if not callable(generator):
        logger.warning("No generate_command found in %s, skipping", module_path)
        return None

    return FunctionPostProcessor(
        code=code,
        generator=generator,
        description=getattr(module, "DESCRIPTION", ""),
        source=source,
    )


def load_default_registry(extra_dir: Path | None = None) -> PostProcessorRegistry:
    """Build a registry from the built-in post-processors plus an optional user directory.

    User modules override built-ins for the same bugcheck code.
    """
    registry = PostProcessorRegistry()
    registry.discover(BUILTIN_DIR, source="builtin")
    if extra_dir is not None:
        registry.discover(Path(extra_dir), source=str(extra_dir))
    return registry


async def apply_post_processing(
    report: ClassifiedReport,
    invoker: DebuggerInvoker,
    registry: PostProcessorRegistry,
    log: RequestLogger,
) -> AnalysisRecord:
    """Run the bugcheck-specific follow-up command and attach its output.

    Failures are recorded in ``post`` and never raised.

    Args:
        report: Classified report
        invoker: Debugger invoker used to run the command
        registry: Post-processor registry
        log: Request-scoped logger

    Returns:
        Final record with ``post`` set to the output text, an error description,
        or ``PostStatus.UNCONFIGURED``
    """
    processor = registry.get(report.bugcheck)
    if processor is None:
        log.info("No command for bugcheck: %s", report.bugcheck)
        return AnalysisRecord.from_report(report, PostStatus.UNCONFIGURED)

    try:
        generated = processor.generate_command(invoker.debugger_path, report.artifact_path, report.bugcheck_args)
        # Generators may hand back the Path arguments unchanged
        command = [os.fspath(part) for part in generated]
    except Exception as e:
        log.error("Post-processor %s failed to build a command: %s", processor.code, e)
        error = PostProcessExecutionError(f"Failed to build command for bugcheck {processor.code}: {e}")
        return AnalysisRecord.from_report(report, ErrorDescription.from_exception(error))

    log.info("Executing command: %s", " ".join(command))
    try:
        output = await invoker.run(command, log)
    except InvocationError as e:
        log.error("Error executing command: %s", e)
        post = ErrorDescription.from_exception(e, error_type=PostProcessExecutionError.__name__)
        return AnalysisRecord.from_report(report, post)
    except Exception as e:
        log.error("Unexpected error executing command: %s", e)
        error = PostProcessExecutionError(f"Failed to run command for bugcheck {processor.code}: {e}")
        return AnalysisRecord.from_report(report, ErrorDescription.from_exception(error))

    log.debug("Command output: %d characters", len(output))
    return AnalysisRecord.from_report(report, output)
