"""Pytest configuration and shared fixtures for kreate tests.

Every test gets its console output redirected into a buffer (the
``console_output`` fixture) so tests stay quiet and can assert on what a
user would have seen.
"""

import io
import sys
import threading
import time
from pathlib import Path

import pytest
from rich.console import Console

from kreate import Project, Target
from kreate import output


@pytest.fixture(autouse=True)
def console_output():
    """Redirect kreate.output into a StringIO buffer for the test."""
    buffer = io.StringIO()
    previous = output.get_console()
    output.set_console(Console(file=buffer, width=200, color_system=None, highlight=False))
    output.set_verbose(False)
    yield buffer
    output.set_console(previous)
    output.set_verbose(False)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield
    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


class BuildRecorder:
    """Thread-safe source of callback build actions that log what they built.

    Each action writes the target's output file so the next run can find it.
    """

    def __init__(self) -> None:
        self.built: list[str] = []
        self.spans: dict[str, tuple[float, float]] = {}
        self._lock = threading.Lock()

    def action(self, fail: bool = False, delay: float = 0.0):
        def build(target: Target) -> bool:
            start = time.monotonic()
            if delay:
                time.sleep(delay)
            with self._lock:
                self.built.append(target.name)
            if fail:
                return False
            if target.output:
                out = Path(target.output)
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_text(f"built {target.name}\n")
            with self._lock:
                self.spans[target.name] = (start, time.monotonic())
            return True

        return build

    def reset(self) -> None:
        with self._lock:
            self.built.clear()
            self.spans.clear()


@pytest.fixture
def recorder() -> BuildRecorder:
    return BuildRecorder()


@pytest.fixture
def project(tmp_path: Path) -> Project:
    """An empty project whose build/bin directories live in tmp_path."""
    return Project(
        "demo",
        "1.0.0",
        languages=["go"],
        args=[],
        build_dir=tmp_path / "build",
        bin_dir=tmp_path / "bin",
    )


@pytest.fixture
def write_source(tmp_path: Path):
    """Write a source file under tmp_path/src and return its path as a string."""

    def write(name: str, content: str) -> str:
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return str(path)

    return write
