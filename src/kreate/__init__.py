"""kreate - a minimal dependency-aware incremental build scheduler.

Declare targets on a Project in a Python build script; kreate orders them
topologically, skips targets whose sources hash the same as last time, and
rebuilds everything downstream of a change.

Public API:
    Project: Declares targets and dispatches the build/clean command line.
    find_file / find_global: Locate source files in the tree or on INCLUDE.
"""

__version__ = "0.1.0"

from .actions import ActionResult, BuildAction, CallbackAction, CommandAction
from .callbacks import ConsoleCallback, NullCallback, ProgressCallback
from .checksums import ChecksumStore, compute_checksum
from .config import BuildOptions, ProjectConfig
from .errors import (
    BuildFailure,
    ConfigurationError,
    CycleDetectedError,
    KreateError,
    ResolutionError,
    TargetNotFoundError,
)
from .files import find_file, find_global
from .graph import BuildGraph
from .models import (
    BuildResult,
    BuildStatus,
    ChecksumRecord,
    Target,
    TargetHandle,
    TargetKind,
    TargetOutcome,
    TargetState,
)
from .project import Project
from .registry import TargetRegistry

__all__ = [
    "ActionResult",
    "BuildAction",
    "BuildFailure",
    "BuildGraph",
    "BuildOptions",
    "BuildResult",
    "BuildStatus",
    "CallbackAction",
    "ChecksumRecord",
    "ChecksumStore",
    "CommandAction",
    "ConfigurationError",
    "ConsoleCallback",
    "CycleDetectedError",
    "KreateError",
    "NullCallback",
    "ProgressCallback",
    "Project",
    "ProjectConfig",
    "ResolutionError",
    "Target",
    "TargetHandle",
    "TargetKind",
    "TargetNotFoundError",
    "TargetOutcome",
    "TargetRegistry",
    "TargetState",
    "compute_checksum",
    "find_file",
    "find_global",
]
