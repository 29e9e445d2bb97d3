"""DPC_WATCHDOG_VIOLATION (0x133)."""

from bugcheck_analyzer.core.debugger import scripted_session

DESCRIPTION = "DPC_WATCHDOG_VIOLATION: !dpcwatchdog"


def generate_command(debugger_path, dump_path, args):
    # The arguments only say which watchdog fired; !dpcwatchdog reports both
    return [
        str(debugger_path),
        "-z", str(dump_path),
        "-c", scripted_session("!dpcwatchdog"),
    ]
