"""CLI interface for the bugcheck analyzer."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bugcheck_analyzer.config import settings
from bugcheck_analyzer.core.debugger import DebuggerInvoker
from bugcheck_analyzer.errors import BatchAnalysisError, ReportParseError
from bugcheck_analyzer.logging_utils import configure_logging, enable_logging
from bugcheck_analyzer.parsing import classify_report, parse_report
from bugcheck_analyzer.postprocess import load_default_registry
from bugcheck_analyzer.records import AnalysisRecord, BatchRecord, PostStatus, serialize_batch
from bugcheck_analyzer.workflows import BatchAnalyzer, FailurePolicy

console = Console()


def _post_summary(record: AnalysisRecord) -> str:
    if isinstance(record.post, PostStatus):
        return "[dim]not configured[/dim]"
    if isinstance(record.post, str):
        return "[green]completed[/green]"
    return f"[red]failed: {escape(record.post.message)}[/red]"


def _render_table(records: list[BatchRecord]) -> Table:
    table = Table(title=f"Analysis Results ({len(records)} dump(s))")
    table.add_column("Dump", style="cyan", no_wrap=True)
    table.add_column("Bugcheck", style="yellow")
    table.add_column("Arguments", style="blue")
    table.add_column("Post-processing")

    for record in records:
        if not record.ok:
            table.add_row(
                record.artifact_path.name,
                "[red]error[/red]",
                "",
                f"[red]{record.error.error_type}: {escape(record.error.message)}[/red]",
            )
            continue
        table.add_row(
            record.artifact_path.name,
            record.bugcheck or "N/A",
            ", ".join(record.bugcheck_args),
            _post_summary(record),
        )
    return table


@click.group()
@click.version_option(package_name="bugcheck-analyzer")
def cli() -> None:
    """Bugcheck Analyzer - structured crash dump analysis with CDB."""
    configure_logging(settings.log_level, settings.log_file)


@cli.command()
@click.argument("target", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Save results as JSON to file"
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print results as JSON instead of a table"
)
@click.option(
    "--fail-fast",
    is_flag=True,
    default=False,
    help="Abort the whole batch when one dump fails (default: record the error and continue)"
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds before a debugger process is killed (default: INVOCATION_TIMEOUT)"
)
@click.option(
    "--concurrency",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum debugger processes at once (default: MAX_CONCURRENCY)"
)
@click.option(
    "--log-output",
    "-l",
    type=click.Path(path_type=Path),
    help="Save log output to file"
)
def analyze(
    target: Path,
    output: Path | None,
    as_json: bool,
    fail_fast: bool,
    timeout: float | None,
    concurrency: int | None,
    log_output: Path | None
) -> None:
    """Analyze a crash dump or a directory of crash dumps.

    Example:
        bugcheck-analyzer analyze MEMORY.DMP
        bugcheck-analyzer analyze C:\\Windows\\Minidump --output results.json
    """
    try:
        if log_output:
            enable_logging(log_output)

        analyzer = BatchAnalyzer(
            invoker=DebuggerInvoker(timeout=timeout),
            failure_policy=FailurePolicy.FAIL_FAST if fail_fast else None,
            max_concurrency=concurrency,
        )
        records = analyzer.run(target)

        if as_json:
            click.echo(json.dumps(serialize_batch(records), indent=2))
        else:
            console.print(_render_table(records))

        if output:
            output.write_text(json.dumps(serialize_batch(records), indent=2), encoding="utf-8")
            console.print(f"\n[green]✓[/green] Results saved to: {output}")

    except BatchAnalysisError as e:
        console.print(f"[red]Batch aborted: {str(e)}[/red]")
        raise click.Abort()
    except FileNotFoundError as e:
        console.print(f"[red]Error: {str(e)}[/red]")
        raise click.Abort()
    except ValueError as e:
        console.print(f"[red]Error: {str(e)}[/red]")
        raise click.Abort()


@cli.command()
@click.argument("report_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the parsed report as JSON"
)
def parse(report_path: Path, as_json: bool) -> None:
    """Parse a saved debugger report without running the debugger.

    Example:
        cdb -z MEMORY.DMP -c "k; !analyze -v ; q" > report.txt
        bugcheck-analyzer parse report.txt
    """
    raw = report_path.read_text(encoding="utf-8", errors="replace")
    try:
        report = classify_report(parse_report(raw, report_path))
    except ReportParseError as e:
        console.print(f"[red]Error: {str(e)}[/red]")
        raise click.Abort()

    if as_json:
        record = AnalysisRecord.from_report(report, PostStatus.UNCONFIGURED)
        click.echo(json.dumps(record.to_dict(), indent=2))
        return

    console.print(f"[cyan]Bugcheck:[/cyan] {report.bugcheck or 'N/A'}")
    for index, arg in enumerate(report.bugcheck_args, start=1):
        console.print(f"[cyan]Arg{index}:[/cyan] {arg}")
    console.print("\n[bold]Dump Information:[/bold]")
    console.print(report.header_info, markup=False)
    console.print("\n[bold]Analysis:[/bold]")
    console.print(report.analysis, markup=False)


@cli.command()
def postprocessors() -> None:
    """List bugcheck post-processors.

    Example:
        bugcheck-analyzer postprocessors
    """
    registry = load_default_registry(settings.post_processors_path)
    if not len(registry):
        console.print("[yellow]No post-processors found[/yellow]")
        return

    table = Table(title="Bugcheck Post-processors")
    table.add_column("Bugcheck", style="cyan", no_wrap=True)
    table.add_column("Description", style="green")
    table.add_column("Source", style="dim")
    for info in registry.list_processors():
        table.add_row(info["code"], info["description"], info["source"])
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
