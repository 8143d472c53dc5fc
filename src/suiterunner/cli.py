"""Command-line interface for suiterunner."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from suiterunner import __version__
from suiterunner.config import SuiteRunnerConfig, create_example_config, get_default_config


console = Console()


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def print_banner() -> None:
    """Print the suiterunner banner."""
    console.print(
        Panel.fit(
            "[bold blue]suiterunner[/bold blue] - concurrent test suite engine",
            subtitle=f"v{__version__}",
        )
    )


def _load_config(config_path: Optional[str]) -> SuiteRunnerConfig:
    if config_path:
        return SuiteRunnerConfig.from_file(config_path)
    try:
        return SuiteRunnerConfig.find_and_load()
    except FileNotFoundError:
        return get_default_config()


@click.group()
@click.version_option(version=__version__, prog_name="suiterunner")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: suiterunner.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """suiterunner - run test suites with class fixtures and concurrent tests."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config
    setup_logging(verbose)


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="suiterunner.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Create a suiterunner configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists:[/yellow] {output_path}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        create_example_config(output_path)
        console.print(f"[green]Created configuration file:[/green] {output_path}")
    except OSError as e:
        console.print(f"[red]Error creating configuration:[/red] {e}")
        sys.exit(1)


@main.command()
@click.argument("targets", nargs=-1, required=True)
@click.option("--workers", "-w", type=click.IntRange(min=1), help="Worker threads per suite")
@click.option("--sequential", is_flag=True, help="Run tests one after another")
@click.option("--stop-on-failure", is_flag=True, help="Stop after the first failure")
@click.option("--stop-on-error", is_flag=True, help="Stop after the first error")
@click.pass_context
def run(
    ctx: click.Context,
    targets: tuple[str, ...],
    workers: Optional[int],
    sequential: bool,
    stop_on_failure: bool,
    stop_on_error: bool,
) -> None:
    """Run the tests in TARGETS (module, module:Class or file.py)."""
    print_banner()

    verbose = ctx.obj.get("verbose", False)

    try:
        config = _load_config(ctx.obj.get("config_path"))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    if workers is not None:
        config.execution.max_workers = workers
    if sequential:
        config.execution.parallel = False
    if stop_on_failure:
        config.execution.stop_on_failure = True
    if stop_on_error:
        config.execution.stop_on_error = True

    from suiterunner.core.runner import TestRunner
    from suiterunner.loader import load_targets
    from suiterunner.report.printer import ResultPrinter
    from suiterunner.report.speedtrap import SlowTestListener

    try:
        suite = load_targets(list(targets))
    except (ImportError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading tests:[/red] {e}")
        sys.exit(2)

    if verbose:
        console.print(f"[dim]Loaded {suite.count()} tests from {len(targets)} target(s)[/dim]")

    printer = ResultPrinter(console, verbose=config.report.verbose or verbose)
    speedtrap = SlowTestListener(
        slow_threshold_ms=config.report.slow_threshold_ms,
        report_length=config.report.slow_report_length,
    )
    runner = TestRunner(config, listeners=[printer, speedtrap])

    ledger = runner.run(suite)
    printer.print_result(ledger, runner.duration_ms)

    if not ledger.was_successful():
        sys.exit(1)


if __name__ == "__main__":
    main()
