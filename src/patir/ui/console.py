"""Console output formatting utilities for patir."""

from __future__ import annotations

import sys
from typing import Optional, Set

from ..model import Status, StepState
from ..sequence import CommandSequence, SequenceStatus


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(self, workflow: str, sequence: str, step_count: int) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Workflow: {workflow}")
        print(f"Sequence: {sequence}")
        print(f"Steps: {step_count}")
        print()

    def print_step(self, number: int, name: str) -> None:
        """Print step start message."""
        print(f"STEP {number}: {name}")

    def print_step_result(self, number: int, state: StepState) -> None:
        """
        Print the final state of a step.

        The first line of the error output is shown for failed steps, the
        whole error output only in debug mode.
        """
        print(f"  {number}: {state.name} - {str(state.status).upper()} ({state.duration:.1f}s)")
        if state.status in (Status.ERROR, Status.WARNING) and state.error:
            error = state.error.strip()
            if self.debug:
                print(f"  Error details: {error}")
            else:
                print(f"  Error: {error.splitlines()[0] if error else 'Unknown error'}")

    def print_plan(self, seq: CommandSequence) -> None:
        """Print the steps of a sequence without running it."""
        self.print_header(seq.name or "sequence")
        for step in seq.steps:
            print(f"  {step.number}: {step.name or step} ({step.strategy})")

    def print_results(self, status: SequenceStatus) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for number in sorted(status.step_states):
            self.print_step_result(number, status.step_states[number])
        print(f"STATUS: {str(status.status).upper()}")
        if status.exec_time:
            print(f"Duration: {status.exec_time:.1f}s")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


class StatusPrinter:
    """
    Sequence observer announcing each step once, when it starts.

    Register it with CommandSequence.add_observer().
    """

    def __init__(self, console: Console):
        self.console = console
        self._announced: Set[int] = set()

    def __call__(self, sequence_status: SequenceStatus) -> None:
        if not sequence_status.running():
            self._announced.clear()
            return
        for number in sorted(sequence_status.step_states):
            state = sequence_status.step_states[number]
            if state.status == Status.RUNNING and number not in self._announced:
                self._announced.add(number)
                self.console.print_step(number, state.name)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
