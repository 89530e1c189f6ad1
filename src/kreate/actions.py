"""Build actions.

A build action is what actually produces a target's output. There are two
variants, dispatched uniformly by the orchestrator:

- CommandAction: run an external command (argv) and check its exit status
- CallbackAction: call a Python function in-process
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .subprocess_utils import run_command

if TYPE_CHECKING:
    from .models import Target

logger = logging.getLogger(__name__)

BuildCallback = Callable[["Target"], "bool | None"]


@dataclass(frozen=True)
class ActionResult:
    """Outcome of running one build action."""

    success: bool
    output: str = ""


@runtime_checkable
class BuildAction(Protocol):
    """Anything that can build a target."""

    def execute(self, target: "Target") -> ActionResult:
        """Build the target and report success or failure."""
        ...

    def describe(self) -> str:
        """Short human-readable description, used in graph dumps and logs."""
        ...


class CommandAction:
    """Runs an external command. Non-zero exit status is a failure."""

    def __init__(self, argv: Sequence[str], cwd: Path | None = None) -> None:
        self.argv = [str(a) for a in argv]
        self.cwd = cwd

    def execute(self, target: "Target") -> ActionResult:
        result = run_command(self.argv, cwd=self.cwd)
        if not result.ok:
            logger.debug("Target %s: command exited with %d", target.name, result.returncode)
        return ActionResult(success=result.ok, output=result.output)

    def describe(self) -> str:
        return " ".join(self.argv)

    def __repr__(self) -> str:
        return f"CommandAction({self.argv!r})"


class CallbackAction:
    """Calls a Python function with the target.

    The callback signals failure by returning False or raising. Returning
    True or None counts as success.
    """

    def __init__(self, callback: BuildCallback, description: str = "") -> None:
        self.callback = callback
        self.description = description or getattr(callback, "__name__", "callback")

    def execute(self, target: "Target") -> ActionResult:
        try:
            outcome = self.callback(target)
        except KeyboardInterrupt:
            raise
        except Exception as e:
            logger.debug("Target %s: callback raised", target.name, exc_info=True)
            return ActionResult(success=False, output=f"{type(e).__name__}: {e}")
        if outcome is False:
            return ActionResult(success=False, output=f"{self.description} reported failure")
        return ActionResult(success=True)

    def describe(self) -> str:
        return f"<{self.description}>"

    def __repr__(self) -> str:
        return f"CallbackAction({self.description!r})"
