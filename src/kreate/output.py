"""
Centralized user-facing output for kreate.

Every line carries a colored tag. In verbose mode lines are also prefixed
with the elapsed time since launch in MM:SS.cc format.

Example output:
    [INFO] Building target: mylib [OK] 0.41s
    [INFO] Target myapp is up to date
    [ERRO] Building target: tool [ERRO]:
    main.go:3:1: syntax error
    [FATA] BUILD: Build failed for target: tool

Usage:
    from kreate.output import log_info, log_warn, log_error

    log_info("Build completed successfully")

Diagnostics that are only useful when debugging kreate itself go through
the standard ``logging`` module instead.
"""

import time
from typing import Any, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

INFO_STYLE = "color(157)"
WARN_STYLE = "color(214)"
ERROR_STYLE = "color(202)"
FATAL_STYLE = "color(196)"
OK_STYLE = "color(154)"
DIM_STYLE = "dim"

_console: Console = Console(highlight=False)
_start_time: Optional[float] = None
_verbose: bool = False


def init_timer() -> None:
    """Set the reference time for elapsed timestamps."""
    global _start_time
    _start_time = time.time()


def set_verbose(verbose: bool) -> None:
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    return _verbose


def set_console(console: Console) -> None:
    """Redirect all output (used by tests and the live progress display)."""
    global _console
    _console = console


def get_console() -> Console:
    return _console


def get_elapsed() -> float:
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore[operator]


def format_timestamp() -> str:
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


def _print(tag: str, style: str, *parts: Any) -> None:
    line = Text()
    if _verbose:
        line.append(f"{format_timestamp()} ", style=DIM_STYLE)
    line.append(f"[{tag}] ", style=style)
    for part in parts:
        if isinstance(part, Text):
            line.append_text(part)
        else:
            line.append(str(part))
    _console.print(line, soft_wrap=True)


def log_info(message: str) -> None:
    _print("INFO", INFO_STYLE, message)


def log_warn(message: str) -> None:
    _print("WARN", WARN_STYLE, message)


def log_error(message: str) -> None:
    _print("ERRO", ERROR_STYLE, message)


def log_fatal(tag: str, message: str) -> None:
    """Report a fatal error. Does not exit; the caller decides the exit status."""
    _print("FATA", FATAL_STYLE, f"{tag}: {message}")


def log_debug(message: str) -> None:
    """Log a message only in verbose mode."""
    if _verbose:
        _print("DEBG", DIM_STYLE, message)


def log_target_ok(name: str, elapsed: float, reason: str = "") -> None:
    detail = f" ({reason})" if reason and _verbose else ""
    _print(
        "INFO",
        INFO_STYLE,
        f"Building target: {name}",
        Text(" [OK] ", style=OK_STYLE),
        Text(f"{format_duration(elapsed)}{detail}", style=DIM_STYLE),
    )


def log_target_failed(name: str, output: str) -> None:
    body = f":\n{output.rstrip()}" if output.strip() else ""
    _print("ERRO", ERROR_STYLE, f"Building target: {name}", Text(" [ERRO]", style=ERROR_STYLE), body)


def log_up_to_date(name: str) -> None:
    _print("INFO", INFO_STYLE, f"Target {name} is up to date")


def print_graph(graph: dict[str, dict[str, Any]]) -> None:
    """Render the dependency/dependents structure as a table."""
    table = Table(title="Dependency graph", show_lines=False)
    table.add_column("Target", style="bold")
    table.add_column("Kind")
    table.add_column("Output", style=DIM_STYLE)
    table.add_column("Depends on")
    table.add_column("Dependents")
    for name, info in graph.items():
        table.add_row(
            name,
            info["kind"],
            info["output"],
            ", ".join(info["dependencies"]) or "-",
            ", ".join(info["dependents"]) or "-",
        )
    _console.print(table)
