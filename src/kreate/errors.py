"""Exception hierarchy for kreate.

Every error carries a short ``tag`` so the CLI can report fatal errors as
``[FATA] <TAG>: message`` before exiting.
"""

from typing import Any


class KreateError(Exception):
    """Base class for all kreate errors."""

    tag = "ERROR"


class ConfigurationError(KreateError):
    """Invalid project setup: duplicate targets, unsupported language, bad handles."""

    tag = "CONFIG"


class ResolutionError(KreateError):
    """A declared source file or searched file could not be found."""

    tag = "RESOLVE"


class CycleDetectedError(KreateError):
    """The dependency graph is not a DAG."""

    tag = "CYCLE"

    def __init__(self, message: str, unscheduled: list[str]) -> None:
        super().__init__(message)
        self.unscheduled = unscheduled


class TargetNotFoundError(KreateError):
    """A subset build named a target that was never registered."""

    tag = "NOT_FOUND"


class BuildFailure(KreateError):
    """A build action exited non-zero or a callback reported failure."""

    tag = "BUILD"

    def __init__(self, message: str, failed: list[str], result: Any = None) -> None:
        super().__init__(message)
        self.failed = failed
        self.result = result
