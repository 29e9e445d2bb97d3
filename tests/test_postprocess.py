"""Tests for bugcheck post-processing dispatch."""

import asyncio
from pathlib import Path

import pytest

from bugcheck_analyzer.errors import InvocationError
from bugcheck_analyzer.postprocess import (
    FunctionPostProcessor,
    PostProcessorRegistry,
    apply_post_processing,
    load_default_registry,
    load_post_processor,
)
from bugcheck_analyzer.records import AnalysisRecord, ClassifiedReport, ErrorDescription, PostStatus
from conftest import FakeInvoker


def make_report(bugcheck, args=()):
    return ClassifiedReport(
        artifact_path=Path("C:/dumps/MEMORY.DMP"),
        header_info="Windows 10 Kernel Version 19041",
        analysis=f"BUGCHECK ({bugcheck})",
        raw_report="raw",
        bugcheck=bugcheck,
        bugcheck_args=tuple(args),
    )


def devstack_generator(debugger_path, dump_path, args):
    return [str(debugger_path), "-z", str(dump_path), "-c", f"k; !devstack {args[1]} ; q"]


@pytest.fixture
def registry_9f():
    registry = PostProcessorRegistry()
    registry.register(FunctionPostProcessor("9f", devstack_generator))
    return registry


def test_registered_code_runs_command(registry_9f, log):
    invoker = FakeInvoker(post_output="!devstack output")
    record = asyncio.run(apply_post_processing(make_report("9f", ["3", "ffffe001d7c5a060"]), invoker, registry_9f, log))

    assert isinstance(record, AnalysisRecord)
    assert record.post == "!devstack output"
    assert invoker.commands == [
        ["cdb.exe", "-z", str(Path("C:/dumps/MEMORY.DMP")), "-c", "k; !devstack ffffe001d7c5a060 ; q"],
    ]


def test_unregistered_code_is_unconfigured(registry_9f, log):
    invoker = FakeInvoker()
    record = asyncio.run(apply_post_processing(make_report("7e", ["c0000005"]), invoker, registry_9f, log))

    assert record.post is PostStatus.UNCONFIGURED
    assert record.post.value == "no post-processing configured for this bugcheck"
    assert invoker.commands == []


def test_missing_code_is_unconfigured(registry_9f, log):
    record = asyncio.run(apply_post_processing(make_report(None), FakeInvoker(), registry_9f, log))
    assert record.post is PostStatus.UNCONFIGURED


def test_invocation_failure_is_recorded(registry_9f, log):
    invoker = FakeInvoker(post_error=InvocationError("Debugger exited with status 1", returncode=1, stderr="bad"))
    record = asyncio.run(apply_post_processing(make_report("9f", ["3", "abc"]), invoker, registry_9f, log))

    assert isinstance(record.post, ErrorDescription)
    assert record.post.error_type == "PostProcessExecutionError"
    assert record.post.details == "bad"
    assert record.bugcheck == "9f"


def test_generator_failure_is_recorded(registry_9f, log):
    # devstack_generator indexes args[1]
    record = asyncio.run(apply_post_processing(make_report("9f", []), FakeInvoker(), registry_9f, log))
    assert isinstance(record.post, ErrorDescription)
    assert record.post.error_type == "PostProcessExecutionError"


def test_generator_may_return_paths(log):
    registry = PostProcessorRegistry()
    registry.register(FunctionPostProcessor("9f", lambda debugger, dump, args: [debugger, "-z", dump, "-c", "k; !devstack ; q"]))
    invoker = FakeInvoker(post_output="!devstack output")

    record = asyncio.run(apply_post_processing(make_report("9f", ["3"]), invoker, registry, log))

    assert record.post == "!devstack output"
    assert invoker.commands == [["cdb.exe", "-z", str(Path("C:/dumps/MEMORY.DMP")), "-c", "k; !devstack ; q"]]


def test_generator_with_invalid_element_is_recorded(log):
    registry = PostProcessorRegistry()
    registry.register(FunctionPostProcessor("9f", lambda debugger, dump, args: [debugger, "-z", None]))
    invoker = FakeInvoker()

    record = asyncio.run(apply_post_processing(make_report("9f", ["3"]), invoker, registry, log))

    assert isinstance(record.post, ErrorDescription)
    assert record.post.error_type == "PostProcessExecutionError"
    assert invoker.commands == []


def test_unexpected_run_error_is_recorded(registry_9f, log):
    invoker = FakeInvoker(post_error=ValueError("embedded null byte"))
    record = asyncio.run(apply_post_processing(make_report("9f", ["3", "abc"]), invoker, registry_9f, log))

    assert isinstance(record.post, ErrorDescription)
    assert record.post.error_type == "PostProcessExecutionError"
    assert "embedded null byte" in record.post.message


def test_lookup_is_normalized(registry_9f):
    assert registry_9f.get("9F") is not None
    assert registry_9f.get("0x0000009f") is not None
    assert "0000009F" in registry_9f
    assert registry_9f.get("7e") is None
    assert registry_9f.get(None) is None


def test_register_without_code_fails():
    with pytest.raises(ValueError):
        PostProcessorRegistry().register(FunctionPostProcessor("", devstack_generator))


def test_default_registry_has_builtins():
    registry = load_default_registry()
    assert registry.codes() == ["133", "7e", "9f"]
    assert all(info["source"] == "builtin" for info in registry.list_processors())


def test_builtin_9f_uses_second_argument():
    registry = load_default_registry()
    command = registry.get("9f").generate_command(Path("cdb.exe"), Path("x.dmp"), ["3", "ffffe001d7c5a060"])
    assert command == ["cdb.exe", "-z", "x.dmp", "-c", "k; !devstack ffffe001d7c5a060 ; q"]


def test_builtin_7e_uses_first_argument():
    registry = load_default_registry()
    command = registry.get("7e").generate_command(Path("cdb.exe"), Path("x.dmp"), ["c0000005", "fffff80312345678"])
    assert command[-1] == "k; !devstack c0000005 ; q"


def test_builtin_133_ignores_arguments():
    registry = load_default_registry()
    command = registry.get("133").generate_command(Path("cdb.exe"), Path("x.dmp"), [])
    assert command[-1] == "k; !dpcwatchdog ; q"


def test_builtin_9f_tolerates_missing_arguments():
    registry = load_default_registry()
    command = registry.get("9f").generate_command(Path("cdb.exe"), Path("x.dmp"), [])
    assert command[-1] == "k; !devstack  ; q"


def test_discover_user_directory_overrides_builtin(tmp_path):
    (tmp_path / "9F.py").write_text(
        'DESCRIPTION = "custom 9f"\n'
        "def generate_command(debugger_path, dump_path, args):\n"
        '    return [str(debugger_path), "-z", str(dump_path), "-c", "k; !irp ; q"]\n'
    )
    (tmp_path / "d1.py").write_text(
        "def generate_command(debugger_path, dump_path, args):\n"
        '    return [str(debugger_path), "-z", str(dump_path), "-c", "k; !thread ; q"]\n'
    )
    (tmp_path / "_helpers.py").write_text("def generate_command(*args):\n    return []\n")
    (tmp_path / "broken.py").write_text("def generate_command(:\n")
    (tmp_path / "nothing.py").write_text("VALUE = 1\n")

    registry = load_default_registry(tmp_path)

    assert registry.codes() == ["133", "7e", "9f", "d1"]
    assert registry.get("9f").description == "custom 9f"
    assert registry.get("9f").source == str(tmp_path)
    assert registry.get("D1").generate_command(Path("cdb.exe"), Path("x.dmp"), [])[-1] == "k; !thread ; q"


def test_discover_missing_directory(tmp_path):
    assert PostProcessorRegistry().discover(tmp_path / "missing") == 0


def test_load_post_processor_without_generator(tmp_path):
    module_path = tmp_path / "50.py"
    module_path.write_text("DESCRIPTION = 'no generator here'\n")
    assert load_post_processor(module_path) is None
