"""Console output of test progress and results."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from suiterunner.core.ledger import OutcomeLedger, TestListener
from suiterunner.core.models import Outcome, OutcomeKind

PROGRESS_MARKS = {
    OutcomeKind.PASSED: ".",
    OutcomeKind.ERROR: "[red]E[/red]",
    OutcomeKind.FAILURE: "[red]F[/red]",
    OutcomeKind.WARNING: "[yellow]W[/yellow]",
    OutcomeKind.INCOMPLETE: "[yellow]I[/yellow]",
    OutcomeKind.SKIPPED: "[cyan]S[/cyan]",
    OutcomeKind.RISKY: "[yellow]R[/yellow]",
}

COUNT_LABELS = [
    (OutcomeKind.ERROR, "Errors"),
    (OutcomeKind.FAILURE, "Failures"),
    (OutcomeKind.WARNING, "Warnings"),
    (OutcomeKind.SKIPPED, "Skipped"),
    (OutcomeKind.INCOMPLETE, "Incomplete"),
    (OutcomeKind.RISKY, "Risky"),
]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def footer_text(ledger: OutcomeLedger) -> str:
    """The one-line verdict printed below the defect lists."""
    if ledger.run_count == 0:
        return "No tests executed!"

    if (
        ledger.was_successful()
        and ledger.all_harmless()
        and ledger.all_completely_implemented()
        and ledger.none_skipped()
    ):
        return (
            f"OK ({_plural(ledger.run_count, 'test')}, "
            f"{_plural(ledger.assertion_count, 'assertion')})"
        )

    if ledger.was_successful():
        headline = "OK, but incomplete, skipped, or risky tests!"
    elif ledger.count_of(OutcomeKind.ERROR):
        headline = "ERRORS!"
    elif ledger.count_of(OutcomeKind.FAILURE):
        headline = "FAILURES!"
    else:
        headline = "WARNINGS!"

    counts = [f"Tests: {ledger.run_count}", f"Assertions: {ledger.assertion_count}"]
    for kind, label in COUNT_LABELS:
        count = ledger.count_of(kind)
        if count:
            counts.append(f"{label}: {count}")
    return f"{headline}\n{', '.join(counts)}."


class ResultPrinter(TestListener):
    """Prints one progress mark per test and a summary at the end."""

    def __init__(
        self,
        console: Optional[Console] = None,
        verbose: bool = False,
        columns: int = 80,
    ):
        self.console = console or Console()
        self.verbose = verbose
        self.columns = columns
        self._column = 0

    def add_outcome(self, outcome: Outcome) -> None:
        self.console.print(PROGRESS_MARKS[outcome.kind], end="")
        self._column += 1
        if self._column >= self.columns:
            self.console.print()
            self._column = 0

    def print_result(self, ledger: OutcomeLedger, duration_ms: Optional[int] = None) -> None:
        if self._column:
            self.console.print()
            self._column = 0

        if duration_ms is not None:
            self.console.print(f"\n[dim]Time: {duration_ms}ms[/dim]")

        self._print_defects(ledger.errors(), "error")
        self._print_defects(ledger.warnings(), "warning")
        self._print_defects(ledger.failures(), "failure")

        if self.verbose:
            self._print_defects(ledger.risky(), "risky test")
            self._print_defects(ledger.incomplete(), "incomplete test")
            self._print_defects(ledger.skipped(), "skipped test")

        fixture_errors = ledger.fixture_errors()
        if fixture_errors:
            self.console.print(f"\n{self._there_were(len(fixture_errors), 'fixture error')}:")
            for i, error in enumerate(fixture_errors, start=1):
                self.console.print(f"\n{i}) {escape(error.suite_name)}::{escape(error.hook)}")
                self.console.print(escape(f"{type(error.error).__name__}: {error.error}"))

        self._print_footer(ledger)

    def _there_were(self, count: int, name: str) -> str:
        return f"There {'was' if count == 1 else 'were'} {_plural(count, name)}"

    def _print_defects(self, outcomes: list[Outcome], name: str) -> None:
        if not outcomes:
            return

        self.console.print(f"\n{self._there_were(len(outcomes), name)}:")
        for i, outcome in enumerate(outcomes, start=1):
            self.console.print(f"\n{i}) {escape(outcome.test_name)}")
            self.console.print(escape(outcome.message))
            cause = outcome.detail.__cause__ if outcome.detail is not None else None
            while cause is not None:
                self.console.print(escape(f"Caused by\n{type(cause).__name__}: {cause}"))
                cause = cause.__cause__

    def _print_footer(self, ledger: OutcomeLedger) -> None:
        text = footer_text(ledger)
        if ledger.run_count == 0 or not ledger.was_successful():
            style = "bold red" if not ledger.was_successful() else "bold yellow"
        elif text.startswith("OK ("):
            style = "bold green"
        else:
            style = "bold yellow"
        self.console.print()
        self.console.print(escape(text), style=style, highlight=False)
