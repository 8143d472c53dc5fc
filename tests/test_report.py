"""Tests for result printing and slow test detection."""

import io
import logging

import pytest
from rich.console import Console

from suiterunner.core.ledger import OutcomeLedger
from suiterunner.core.models import OutcomeKind
from suiterunner.report.printer import ResultPrinter, footer_text
from suiterunner.report.speedtrap import SlowTestListener


class Unit:
    def __init__(self, name: str):
        self.display_name = name
        self.name = name

    def __str__(self):
        return self.display_name


def record(ledger, name, kind=None, detail=None, elapsed=0.0):
    unit = Unit(name)
    ledger.start_test(unit)
    if kind is not None:
        ledger.add_outcome(unit, kind, detail or RuntimeError(name), elapsed)
    ledger.end_test(unit, elapsed)
    return unit


def make_printer(**kwargs):
    output = io.StringIO()
    console = Console(file=output, width=120, color_system=None)
    return ResultPrinter(console, **kwargs), output


class TestFooterText:
    """Tests for the result footer."""

    def test_no_tests(self):
        """Test the footer of an empty run."""
        assert footer_text(OutcomeLedger()) == "No tests executed!"

    def test_all_passed(self):
        """Test the footer of a clean run."""
        ledger = OutcomeLedger()
        record(ledger, "a")
        ledger.add_assertions(1)

        assert footer_text(ledger) == "OK (1 test, 1 assertion)"

    def test_plural(self):
        """Test counts are pluralised."""
        ledger = OutcomeLedger()
        record(ledger, "a")
        record(ledger, "b")

        assert footer_text(ledger) == "OK (2 tests, 0 assertions)"

    def test_skipped(self):
        """Test a run with skips is OK with a caveat."""
        ledger = OutcomeLedger()
        record(ledger, "a")
        record(ledger, "b", OutcomeKind.SKIPPED)

        assert footer_text(ledger) == (
            "OK, but incomplete, skipped, or risky tests!\n"
            "Tests: 2, Assertions: 0, Skipped: 1."
        )

    @pytest.mark.parametrize(
        "kind, headline",
        [
            (OutcomeKind.ERROR, "ERRORS!"),
            (OutcomeKind.FAILURE, "FAILURES!"),
            (OutcomeKind.WARNING, "WARNINGS!"),
        ],
    )
    def test_defects(self, kind, headline):
        """Test the headline names the worst defect."""
        ledger = OutcomeLedger()
        record(ledger, "a", kind)

        assert footer_text(ledger).startswith(headline + "\n")

    def test_errors_win_over_failures(self):
        """Test errors are reported ahead of failures."""
        ledger = OutcomeLedger()
        record(ledger, "a", OutcomeKind.FAILURE)
        record(ledger, "b", OutcomeKind.ERROR)

        assert footer_text(ledger) == (
            "ERRORS!\nTests: 2, Assertions: 0, Errors: 1, Failures: 1."
        )


class TestResultPrinter:
    """Tests for ResultPrinter."""

    def test_progress_marks(self):
        """Test one mark is printed per outcome."""
        printer, output = make_printer()
        ledger = OutcomeLedger()
        ledger.add_listener(printer)

        record(ledger, "a")
        record(ledger, "b", OutcomeKind.FAILURE)
        record(ledger, "c", OutcomeKind.SKIPPED)

        assert output.getvalue() == ".FS"

    def test_progress_wraps(self):
        """Test progress marks wrap at the configured column."""
        printer, output = make_printer(columns=2)
        ledger = OutcomeLedger()
        ledger.add_listener(printer)

        for name in "abc":
            record(ledger, name)

        assert output.getvalue() == "..\n."

    def test_defect_list(self):
        """Test errors are listed with their messages and causes."""
        printer, output = make_printer()
        ledger = OutcomeLedger()
        try:
            try:
                raise KeyError("missing")
            except KeyError as e:
                raise RuntimeError("lookup failed") from e
        except RuntimeError as e:
            error = e
        record(ledger, "SampleCase::test_lookup", OutcomeKind.ERROR, error)

        printer.print_result(ledger, duration_ms=12)

        text = output.getvalue()
        assert "Time: 12ms" in text
        assert "There was 1 error:" in text
        assert "1) SampleCase::test_lookup" in text
        assert "lookup failed" in text
        assert "Caused by" in text
        assert "ERRORS!" in text

    def test_markup_is_escaped(self):
        """Test test names with brackets are printed verbatim."""
        printer, output = make_printer()
        ledger = OutcomeLedger()
        record(ledger, "Case::test[red]", OutcomeKind.FAILURE, AssertionError("[bold]x"))

        printer.print_result(ledger)

        text = output.getvalue()
        assert "Case::test[red]" in text
        assert "[bold]x" in text

    def test_skipped_listed_only_when_verbose(self):
        """Test skipped tests are listed in verbose mode only."""
        ledger = OutcomeLedger()
        record(ledger, "a", OutcomeKind.SKIPPED, RuntimeError("later"))

        quiet, quiet_output = make_printer()
        quiet.print_result(ledger)
        verbose, verbose_output = make_printer(verbose=True)
        verbose.print_result(ledger)

        assert "skipped test" not in quiet_output.getvalue()
        assert "There was 1 skipped test:" in verbose_output.getvalue()

    def test_fixture_errors_listed(self):
        """Test fixture errors are printed."""
        printer, output = make_printer()
        ledger = OutcomeLedger()
        record(ledger, "a")
        ledger.add_fixture_error(Unit("SampleCase"), "close_db", RuntimeError("gone"))

        printer.print_result(ledger)

        text = output.getvalue()
        assert "There was 1 fixture error:" in text
        assert "SampleCase::close_db" in text
        assert "RuntimeError: gone" in text


class TestSlowTestListener:
    """Tests for SlowTestListener."""

    def run(self, listener, timings):
        ledger = OutcomeLedger()
        ledger.add_listener(listener)
        ledger.start_test_suite(Unit("suite"))
        for name, elapsed in timings:
            record(ledger, name, elapsed=elapsed)
        ledger.end_test_suite(Unit("suite"))

    def test_no_slow_tests(self):
        """Test no report when every test is fast."""
        listener = SlowTestListener(slow_threshold_ms=500)

        self.run(listener, [("a", 0.01), ("b", 0.2)])

        assert listener.report == []
        assert listener.slow_tests() == []

    def test_slowest_first(self):
        """Test slow tests are reported slowest first."""
        listener = SlowTestListener(slow_threshold_ms=100)

        self.run(listener, [("a", 0.2), ("b", 0.05), ("c", 0.5)])

        assert listener.slow_tests() == [("c", 500), ("a", 200)]
        assert listener.report == [
            "You should really fix these slow tests (>100ms)...",
            " 1. 500ms to run c",
            " 2. 200ms to run a",
        ]

    def test_threshold_is_inclusive(self):
        """Test a test exactly at the threshold counts as slow."""
        listener = SlowTestListener(slow_threshold_ms=100)

        self.run(listener, [("a", 0.1)])

        assert listener.slow_tests() == [("a", 100)]

    def test_same_name_tests_kept_apart(self):
        """Test slow tests sharing a display name are all reported."""
        listener = SlowTestListener(slow_threshold_ms=10)

        self.run(listener, [("Warning", 0.1), ("Warning", 0.3)])

        assert listener.slow_tests() == [("Warning", 300), ("Warning", 100)]
        assert len(listener.report) == 3

    def test_hidden_count(self):
        """Test tests beyond the report length are summarised."""
        listener = SlowTestListener(slow_threshold_ms=10, report_length=1)

        self.run(listener, [("a", 0.1), ("b", 0.2), ("c", 0.3)])

        assert len(listener.report) == 3
        assert listener.report[-1] == (
            "...and there are 2 more above your threshold hidden from view"
        )

    def test_report_only_after_outermost_suite(self):
        """Test nested suites do not trigger the report early."""
        listener = SlowTestListener(slow_threshold_ms=10)
        ledger = OutcomeLedger()
        ledger.add_listener(listener)

        ledger.start_test_suite(Unit("outer"))
        ledger.start_test_suite(Unit("inner"))
        record(ledger, "a", elapsed=0.1)
        ledger.end_test_suite(Unit("inner"))
        assert listener.report == []
        ledger.end_test_suite(Unit("outer"))

        assert listener.report[1] == " 1. 100ms to run a"

    def test_report_logged(self, caplog):
        """Test the report is logged as a warning."""
        listener = SlowTestListener(slow_threshold_ms=10)

        with caplog.at_level(logging.WARNING, logger="suiterunner.report.speedtrap"):
            self.run(listener, [("a", 0.1)])

        assert "You should really fix these slow tests" in caplog.text
