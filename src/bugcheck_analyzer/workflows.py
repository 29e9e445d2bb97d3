"""Batch workflow: resolve dumps, analyze them concurrently, post-process the results."""

import asyncio
import os
import time
from enum import Enum
from pathlib import Path
from typing import List

from bugcheck_analyzer.config import settings
from bugcheck_analyzer.core.debugger import DebuggerInvoker
from bugcheck_analyzer.errors import BatchAnalysisError, DumpAnalysisError
from bugcheck_analyzer.logging_utils import RequestLogger
from bugcheck_analyzer.parsing.bugcheck import classify_report
from bugcheck_analyzer.parsing.report import parse_report
from bugcheck_analyzer.postprocess.registry import PostProcessorRegistry, load_default_registry
from bugcheck_analyzer.records import BatchRecord, ClassifiedReport, ErrorDescription, ErrorRecord


class FailurePolicy(str, Enum):
    """What a failing dump does to its batch."""
    ISOLATE = "isolate"  # Failing dump becomes an ErrorRecord
    FAIL_FAST = "fail_fast"  # Failing dump aborts the whole batch


def resolve_target(target: Path | str, extension: str | None = None) -> List[Path]:
    """Resolve a file or directory into the list of dumps to analyze.

    Directory entries keep the order ``os.listdir`` returns them in, which is
    platform dependent and not sorted.

    Args:
        target: A dump file or a directory of dumps
        extension: Dump file extension for directory targets (defaults to settings.dump_extension)

    Returns:
        Dump paths in resolution order

    Raises:
        FileNotFoundError: If the target does not exist
    """
    target = Path(target)
    extension = (extension or settings.dump_extension).lower()

    if not target.exists():
        raise FileNotFoundError(f"Analysis target not found: {target}")

    if not target.is_dir():
        return [target.resolve()]

    return [
        (target / name).resolve()
        for name in os.listdir(target)
        if name.lower().endswith(extension) and (target / name).is_file()
    ]


async def _gather_or_cancel(coroutines: list) -> list:
    """Run coroutines concurrently and return their results in input order.

    If any of them raises (or the caller is cancelled), the rest are cancelled
    and awaited before the exception propagates, so no debugger process
    outlives the call.
    """
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        # gather keeps input order regardless of completion order
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BatchAnalyzer:
    """Runs the invoke, parse, classify and post-process stages over a batch of dumps."""

    def __init__(
        self,
        invoker: DebuggerInvoker | None = None,
        registry: PostProcessorRegistry | None = None,
        failure_policy: FailurePolicy | str | None = None,
        max_concurrency: int | None = None,
        extension: str | None = None,
    ):
        """Initialize the batch analyzer.

        Args:
            invoker: Debugger invoker (defaults to one built from settings)
            registry: Post-processor registry (defaults to built-ins plus settings.post_processors_path)
            failure_policy: isolate or fail_fast (defaults to settings.failure_policy)
            max_concurrency: Maximum debugger processes at once (defaults to settings.max_concurrency)
            extension: Dump extension for directory targets
        """
        self.invoker = invoker or DebuggerInvoker()
        self.registry = registry if registry is not None else load_default_registry(settings.post_processors_path)
        self.failure_policy = FailurePolicy(failure_policy or settings.failure_policy)
        self.max_concurrency = max_concurrency if max_concurrency is not None else settings.max_concurrency
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.extension = extension

    async def analyze_dump(self, dump_path: Path, log: RequestLogger) -> ClassifiedReport:
        """Invoke the debugger on one dump and parse its report."""
        raw = await self.invoker.invoke(dump_path, log)
        report = classify_report(parse_report(raw, dump_path))
        log.info("Bugcheck %s with %d argument(s)", report.bugcheck, len(report.bugcheck_args))
        return report

    async def _analyze_one(
        self, dump_path: Path, semaphore: asyncio.Semaphore, log: RequestLogger
    ) -> ClassifiedReport | ErrorRecord:
        async with semaphore:
            try:
                return await self.analyze_dump(dump_path, log)
            except DumpAnalysisError as e:
                if self.failure_policy is FailurePolicy.FAIL_FAST:
                    log.error("Failed to analyze dump, aborting batch: %s", e)
                    raise BatchAnalysisError(f"Failed to analyze {dump_path.name}: {e}", dump_path) from e
                log.error("Failed to analyze dump: %s", e)
                return ErrorRecord(artifact_path=dump_path, error=ErrorDescription.from_exception(e))

    async def _post_process_one(
        self, item: ClassifiedReport | ErrorRecord, semaphore: asyncio.Semaphore, log: RequestLogger
    ) -> BatchRecord:
        if isinstance(item, ErrorRecord):
            return item
        async with semaphore:
            return await self.registry.apply(item, self.invoker, log)

    async def analyze(self, target: Path | str, request_id: str | None = None) -> List[BatchRecord]:
        """Analyze a dump or a directory of dumps.

        Args:
            target: Dump file or directory
            request_id: Correlation id for log lines (generated if omitted)

        Returns:
            One record per resolved dump, in resolution order

        Raises:
            FileNotFoundError: If the target does not exist
            BatchAnalysisError: Fail-fast policy and a dump failed
        """
        log = RequestLogger(request_id=request_id)
        dumps = resolve_target(target, self.extension)
        log.info("Sending %d dump(s) from %s for analysis", len(dumps), target)
        start_time = time.perf_counter()

        semaphore = asyncio.Semaphore(self.max_concurrency)
        reports = await _gather_or_cancel([
            self._analyze_one(dump, semaphore, log.bind(dump))
            for dump in dumps
        ])
        records = await _gather_or_cancel([
            self._post_process_one(item, semaphore, log.bind(item.artifact_path))
            for item in reports
        ])

        failed = sum(1 for record in records if not record.ok)
        log.info(
            "Analyzed %d dump(s) in %.2fs (%d failed)",
            len(records), time.perf_counter() - start_time, failed,
        )
        return list(records)

    def run(self, target: Path | str, request_id: str | None = None) -> List[BatchRecord]:
        """Synchronous wrapper around ``analyze``."""
        return asyncio.run(self.analyze(target, request_id=request_id))


async def analyze(target: Path | str, request_id: str | None = None, **kwargs) -> List[BatchRecord]:
    """Analyze a target with a ``BatchAnalyzer`` built from ``kwargs``."""
    return await BatchAnalyzer(**kwargs).analyze(target, request_id=request_id)


def run_analysis(target: Path | str, request_id: str | None = None, **kwargs) -> List[BatchRecord]:
    """Synchronous entry point for callers without an event loop."""
    return asyncio.run(analyze(target, request_id=request_id, **kwargs))
