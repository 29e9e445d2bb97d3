"""SYSTEM_THREAD_EXCEPTION_NOT_HANDLED (0x7E)."""

from bugcheck_analyzer.core.debugger import scripted_session
from bugcheck_analyzer.postprocess.base import arg_or_empty

DESCRIPTION = "SYSTEM_THREAD_EXCEPTION_NOT_HANDLED: !devstack on Arg1"


def generate_command(debugger_path, dump_path, args):
    return [
        str(debugger_path),
        "-z", str(dump_path),
        "-c", scripted_session(f"!devstack {arg_or_empty(args, 0)}"),
    ]
