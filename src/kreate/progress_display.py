"""Rich-based live progress display for parallel builds.

Renders one line per target that transitions through its states:

    mylib    Building  ⠹ output missing
    myapp    Waiting
    tool     Built     ✓ 1.2s

Thread-safe: worker threads call on_progress() concurrently while the Live
display refreshes from its own thread.
"""

import threading
import time
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from .models import TargetState

_SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

_STATE_LABELS = {
    TargetState.WAITING: ("Waiting", "dim"),
    TargetState.BUILDING: ("Building", "bold cyan"),
    TargetState.UP_TO_DATE: ("Up to date", "green"),
    TargetState.BUILT: ("Built", "green"),
    TargetState.FAILED: ("Failed", "red bold"),
    TargetState.BLOCKED: ("Blocked", "yellow"),
}


class _TargetDisplayState:
    __slots__ = ("name", "state", "detail", "elapsed")

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = TargetState.WAITING
        self.detail = ""
        self.elapsed = 0.0


class BuildProgressDisplay:
    """Live table of targets and their build state.

    Implements ProgressCallback.

    Args:
        console: Rich Console to render to. If None, creates a new one.
        project_name: Shown in the header line.
        refresh_per_second: Display refresh rate.
    """

    def __init__(self, console: Console | None, project_name: str, refresh_per_second: int = 10) -> None:
        self._console = console if console is not None else Console()
        self._project_name = project_name
        self._refresh_per_second = refresh_per_second
        self._states: dict[str, _TargetDisplayState] = {}
        self._order: list[str] = []
        self._lock = threading.Lock()
        self._live: Live | None = None

    def register_target(self, name: str) -> None:
        """Register a target before the build starts, fixing its row order."""
        with self._lock:
            if name not in self._states:
                self._states[name] = _TargetDisplayState(name)
                self._order.append(name)

    def on_progress(self, target_name: str, state: TargetState, detail: str, elapsed: float) -> None:
        with self._lock:
            entry = self._states.get(target_name)
            if entry is None:
                entry = _TargetDisplayState(target_name)
                self._states[target_name] = entry
                self._order.append(target_name)
            entry.state = state
            # Only the first line of failure output fits in a row
            entry.detail = detail.strip().splitlines()[0] if detail.strip() else ""
            entry.elapsed = elapsed

    def start(self) -> None:
        self._live = Live(
            self,
            console=self._console,
            refresh_per_second=self._refresh_per_second,
            transient=False,
        )
        self._live.start()

    def stop(self) -> None:
        if self._live is not None:
            self._live.refresh()
            self._live.stop()
            self._live = None

    def __rich__(self) -> Group:
        return self._render_display()

    def _render_display(self) -> Group:
        header = Text(f"Building {self._project_name}...\n", style="bold")
        return Group(header, self._render_table(), self._render_footer())

    def _render_table(self) -> Table:
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1))
        table.add_column("Target", no_wrap=True, min_width=20)
        table.add_column("State", no_wrap=True, min_width=12)
        table.add_column("Detail", no_wrap=True)

        with self._lock:
            for name in self._order:
                entry = self._states[name]
                label, style = _STATE_LABELS[entry.state]
                table.add_row(Text(name, style=style), Text(label, style=style), self._format_detail(entry))
        return table

    def _format_detail(self, entry: _TargetDisplayState) -> Text:
        if entry.state == TargetState.BUILDING:
            frame = _SPINNER_FRAMES[int(time.monotonic() * 8) % len(_SPINNER_FRAMES)]
            return Text(f"{frame} {entry.detail}", style="cyan")
        if entry.state == TargetState.BUILT:
            return Text(f"✓ {entry.elapsed:.1f}s", style="green")
        if entry.state == TargetState.FAILED:
            return Text(f"✗ {entry.detail or 'Error'}", style="red")
        if entry.state == TargetState.BLOCKED:
            return Text(entry.detail, style="yellow")
        return Text("")

    def _render_footer(self) -> Text:
        with self._lock:
            counts: dict[TargetState, int] = {}
            for entry in self._states.values():
                counts[entry.state] = counts.get(entry.state, 0) + 1
            total = len(self._states)

        parts = [f"{total} targets"]
        for state, word in (
            (TargetState.BUILDING, "building"),
            (TargetState.BUILT, "built"),
            (TargetState.UP_TO_DATE, "up to date"),
            (TargetState.FAILED, "failed"),
            (TargetState.BLOCKED, "blocked"),
        ):
            if counts.get(state):
                parts.append(f"{counts[state]} {word}")
        return Text(f"\n  {', '.join(parts)}", style="dim")

    def get_snapshot(self) -> list[dict[str, Any]]:
        """Current display state, for tests."""
        with self._lock:
            return [
                {"name": e.name, "state": e.state, "detail": e.detail, "elapsed": e.elapsed}
                for e in (self._states[n] for n in self._order)
            ]

    def __enter__(self) -> "BuildProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
