"""DRIVER_POWER_STATE_FAILURE (0x9F): dump the device stack of the blocked device object."""

from bugcheck_analyzer.core.debugger import scripted_session
from bugcheck_analyzer.postprocess.base import arg_or_empty

DESCRIPTION = "DRIVER_POWER_STATE_FAILURE: !devstack on the physical device object (Arg2)"


def generate_command(debugger_path, dump_path, args):
    devstack_arg = arg_or_empty(args, 1)
    return [
        str(debugger_path),
        "-z", str(dump_path),
        "-c", scripted_session(f"!devstack {devstack_arg}"),
    ]
