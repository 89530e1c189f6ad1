"""Progress callback protocol for build orchestrators.

Orchestrators report every target state change through a ProgressCallback.
ConsoleCallback prints the classic one-line-per-target log, the live
progress display renders a table, and NullCallback discards everything.
"""

from typing import Protocol, runtime_checkable

from . import output
from .models import TargetState


@runtime_checkable
class ProgressCallback(Protocol):
    """Receives target state changes from an orchestrator.

    May be called from worker threads when building in parallel.
    """

    def on_progress(self, target_name: str, state: TargetState, detail: str, elapsed: float) -> None:
        """Called when a target changes state.

        Args:
            target_name: Name of the target.
            state: New state.
            detail: Rebuild reason, failure output or blocking dependency.
            elapsed: Seconds spent building (0 unless the target was built).
        """
        ...


class NullCallback:
    """Silently discards all progress updates."""

    def on_progress(self, target_name: str, state: TargetState, detail: str, elapsed: float) -> None:
        pass


class ConsoleCallback:
    """Prints target results through kreate.output."""

    def on_progress(self, target_name: str, state: TargetState, detail: str, elapsed: float) -> None:
        if state == TargetState.BUILDING:
            output.log_debug(f"Building target: {target_name} ({detail})")
        elif state == TargetState.BUILT:
            output.log_target_ok(target_name, elapsed, detail)
        elif state == TargetState.UP_TO_DATE:
            output.log_up_to_date(target_name)
        elif state == TargetState.FAILED:
            output.log_target_failed(target_name, detail)
        elif state == TargetState.BLOCKED:
            output.log_warn(f"Skipping target {target_name}: {detail}")
