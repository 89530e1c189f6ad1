"""Data models for the build graph.

Defines the core dataclasses used throughout kreate:
- TargetKind: What a target produces
- TargetHandle: Lightweight reference to a registered target
- Target: One buildable unit and its declared dependencies
- ChecksumRecord: Content-hash witness for one source file
- TargetState / TargetOutcome / BuildResult: Per-run results
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .actions import BuildAction


class TargetKind(Enum):
    """Kind of artifact a target produces."""

    EXECUTABLE = "executable"
    STATIC_LIB = "static_lib"
    DYNAMIC_LIB = "dynamic_lib"
    CUSTOM = "custom"

    @property
    def is_library(self) -> bool:
        return self in (TargetKind.STATIC_LIB, TargetKind.DYNAMIC_LIB)


@dataclass(frozen=True)
class TargetHandle:
    """Index of a target inside its registry.

    Handles are what build scripts pass around as dependencies. Resolving a
    handle through the registry always yields the single live Target, so a
    target mutated after registration is seen the same way by every dependent.
    """

    index: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class Target:
    """A single buildable unit.

    Attributes:
        name: Unique name within a project, used as the graph key
        kind: What the target produces
        sources: Ordered input file paths
        output: Path of the produced artifact
        dependencies: Handles of targets that must be up to date first
        build_flags: Extra toolchain flags
        action: Explicit build action for custom and callback targets
        main_dir: Directory of the first source file ("." if none)
        language: Toolchain language for built-in kinds (e.g. "go")
        import_paths: Extra import directories (recorded, not used by synthesis)
    """

    name: str
    kind: TargetKind
    sources: list[str]
    output: str
    dependencies: list[TargetHandle] = field(default_factory=list)
    build_flags: list[str] = field(default_factory=list)
    action: "BuildAction | None" = None
    main_dir: str = "."
    language: str | None = None
    import_paths: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Ordered set semantics: first occurrence wins
        self.sources = list(dict.fromkeys(self.sources))

    @property
    def dependency_names(self) -> list[str]:
        return list(dict.fromkeys(h.name for h in self.dependencies))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (actions are described, not serialized)."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "sources": list(self.sources),
            "output": self.output,
            "dependencies": self.dependency_names,
            "build_flags": list(self.build_flags),
            "action": repr(self.action) if self.action is not None else None,
            "main_dir": self.main_dir,
            "language": self.language,
        }


@dataclass(frozen=True)
class ChecksumRecord:
    """Staleness witness for one source file.

    Only content_hash takes part in staleness decisions. last_modified is kept
    for humans reading the checksum store.
    """

    file_path: str
    content_hash: str
    last_modified: datetime | None


class TargetState(Enum):
    """State of a target during one build run."""

    WAITING = "waiting"
    BUILDING = "building"
    UP_TO_DATE = "up_to_date"
    BUILT = "built"
    FAILED = "failed"
    BLOCKED = "blocked"

    @property
    def is_terminal(self) -> bool:
        return self not in (TargetState.WAITING, TargetState.BUILDING)

    @property
    def is_ok(self) -> bool:
        return self in (TargetState.UP_TO_DATE, TargetState.BUILT)


class BuildStatus(Enum):
    """Terminal outcome of a build run."""

    SUCCESS = "success"
    FAILED = "failed"
    BEST_EFFORT = "best_effort"


@dataclass
class TargetOutcome:
    """What happened to one target during a run.

    Attributes:
        name: Target name
        state: Final state
        reason: Why it was rebuilt, skipped or failed
        output: Captured build output (stdout and stderr merged)
        elapsed: Seconds spent running the build action
    """

    name: str
    state: TargetState = TargetState.WAITING
    reason: str = ""
    output: str = ""
    elapsed: float = 0.0
    start_time: float | None = None

    def mark_started(self) -> None:
        self.state = TargetState.BUILDING
        self.start_time = time.monotonic()

    def update_elapsed(self) -> None:
        if self.start_time is not None:
            self.elapsed = time.monotonic() - self.start_time

    def finish(self, state: TargetState, reason: str = "", output: str = "") -> None:
        self.state = state
        if reason:
            self.reason = reason
        if output:
            self.output = output
        self.update_elapsed()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "reason": self.reason,
            "output": self.output,
            "elapsed": self.elapsed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TargetOutcome":
        return cls(
            name=data["name"],
            state=TargetState(data.get("state", "waiting")),
            reason=data.get("reason", ""),
            output=data.get("output", ""),
            elapsed=data.get("elapsed", 0.0),
        )


@dataclass
class BuildResult:
    """Aggregated result of one build run.

    Attributes:
        outcomes: Per-target outcomes in build order
        total_elapsed: Wall-clock time in seconds
        status: SUCCESS, FAILED (aborted on a failure) or BEST_EFFORT
            (ran to the end with --ignore-fatal but something failed)
    """

    outcomes: list[TargetOutcome]
    total_elapsed: float
    status: BuildStatus

    @property
    def success(self) -> bool:
        return self.status == BuildStatus.SUCCESS

    @property
    def rebuilt_names(self) -> list[str]:
        return [o.name for o in self.outcomes if o.state == TargetState.BUILT]

    @property
    def up_to_date_names(self) -> list[str]:
        return [o.name for o in self.outcomes if o.state == TargetState.UP_TO_DATE]

    @property
    def failed(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.state == TargetState.FAILED]

    @property
    def blocked(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.state == TargetState.BLOCKED]

    def outcome(self, name: str) -> TargetOutcome:
        for o in self.outcomes:
            if o.name == name:
                return o
        raise KeyError(f"No outcome for target: {name}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcomes": [o.to_dict() for o in self.outcomes],
            "total_elapsed": self.total_elapsed,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BuildResult":
        return cls(
            outcomes=[TargetOutcome.from_dict(o) for o in data["outcomes"]],
            total_elapsed=data["total_elapsed"],
            status=BuildStatus(data["status"]),
        )
