"""Test configuration."""

import asyncio
from pathlib import Path

import pytest

from bugcheck_analyzer.errors import InvocationError
from bugcheck_analyzer.logging_utils import RequestLogger

HEADER = r"""Microsoft (R) Windows Debugger Version 10.0.22621.2428 AMD64
Copyright (c) Microsoft Corporation. All rights reserved.


Loading Dump File [C:\dumps\MEMORY.DMP]
Kernel Bitmap Dump File: Kernel address space is available, User address space may not be available.

Symbol search path is: srv*
Executable search path is:
Windows 10 Kernel Version 19041 MP (8 procs) Free x64
Product: WinNt, suite: TerminalServer SingleUserTS
Edition build lab: 19041.1.amd64fre.vb_release.191206-1406
Kernel base = 0xfffff805`1a000000 PsLoadedModuleList = 0xfffff805`1ac2a2d0
Debug session time: Mon Oct  2 10:15:42.123 2023 (UTC + 2:00)
System Uptime: 0 days 4:12:33.456
Loading Kernel Symbols
...............................................................
Loading User Symbols

Loading unloaded module list
.......
For analysis of this file, run !analyze -v
0: kd> k; !analyze -v ; q
 # Child-SP          RetAddr               Call Site
00 ffffc001`23456778 fffff805`1a2d1234     nt!KeBugCheckEx
01 ffffc001`23456780 fffff805`1a2d5678     nt!PopIrpWatchdogBugcheck+0x12e
*******************************************************************************
*                                                                             *
*                        Bugcheck Analysis                                    *
*                                                                             *
*******************************************************************************

"""

ANALYSIS_9F = """DRIVER_POWER_STATE_FAILURE (9f)
A driver has failed to complete a power IRP within a specific time.
Arguments:
Arg1: 0000000000000003, A device object has been blocking an Irp for too long a time
Arg2: ffffe001d7c5a060, Physical Device Object of the stack
Arg3: ffffc00123456820, nt!TRIAGE_9F_POWER on Win7 and higher, otherwise the Functional Device Object of the stack
Arg4: ffffe001dc1e8a20, The blocked IRP

Debugging Details:
"""

DETAILS = """------------------

KEY_VALUES_STRING: 1

BUGCHECK_CODE:  9f

PROCESS_NAME:  System

"""

STACK = """STACK_TEXT:
ffffc001`23456778 fffff805`1a2d1234 : 00000000`0000009f 00000000`00000003 : nt!KeBugCheckEx
ffffc001`23456780 fffff805`1a2d5678 : ffffe001`d7c5a060 ffffc001`23456820 : nt!PopIrpWatchdogBugcheck+0x12e

SYMBOL_NAME:  nt!PopIrpWatchdogBugcheck+12e
"""

SAMPLE_REPORT = HEADER + ANALYSIS_9F + DETAILS + STACK


def build_report(analysis: str = ANALYSIS_9F, stack: bool = True) -> str:
    """Build a debugger report around a given analysis section."""
    return HEADER + analysis + DETAILS + (STACK if stack else "")


def bugcheck_analysis(name: str, code: str, args: list[str]) -> str:
    lines = [f"{name} ({code})", "Description of the failure.", "Arguments:"]
    lines += [f"Arg{i}: {value}, argument {i}" for i, value in enumerate(args, start=1)]
    return "\n".join(lines) + "\n\nDebugging Details:\n"


class FakeInvoker:
    """Stand-in for DebuggerInvoker with canned reports and artificial delays."""

    def __init__(self, reports=None, delays=None, post_output="post-processing output", post_error=None):
        self.debugger_path = Path("cdb.exe")
        self.reports = reports or {}
        self.delays = delays or {}
        self.post_output = post_output
        self.post_error = post_error
        self.invoked = []
        self.commands = []
        self.cancelled = []

    async def invoke(self, dump_path, log):
        self.invoked.append(dump_path.name)
        try:
            await asyncio.sleep(self.delays.get(dump_path.name, 0))
        except asyncio.CancelledError:
            self.cancelled.append(dump_path.name)
            raise
        report = self.reports.get(dump_path.name, SAMPLE_REPORT)
        if isinstance(report, Exception):
            raise report
        return report

    async def run(self, argv, log):
        self.commands.append(list(argv))
        if self.post_error is not None:
            raise self.post_error
        return self.post_output


@pytest.fixture
def sample_report():
    return SAMPLE_REPORT


@pytest.fixture
def log():
    return RequestLogger(request_id="test0001")


@pytest.fixture
def mock_dump_path(tmp_path):
    """Create a mock dump file path."""
    dump_file = tmp_path / "test.dmp"
    dump_file.write_bytes(b"PAGEDU64")
    return dump_file


@pytest.fixture
def dump_dir(tmp_path):
    """Directory with three dumps and one unrelated file."""
    directory = tmp_path / "dumps"
    directory.mkdir()
    for name in ("a.dmp", "b.dmp", "c.dmp"):
        (directory / name).write_bytes(b"PAGEDU64")
    (directory / "notes.txt").write_text("not a dump")
    return directory


@pytest.fixture
def invocation_failure():
    return InvocationError("Debugger exited with status 1", returncode=1, stderr="Could not open dump file")
