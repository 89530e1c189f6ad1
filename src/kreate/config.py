"""Project configuration and per-run build options.

Design:
    ProjectConfig is fixed when a build script creates its Project.
    BuildOptions is resolved from the command line for every run and flows
    through the session into the decision engine, the orchestrator and the
    toolchains.
"""

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ProjectConfig:
    """Static project settings.

    Attributes:
        name: Project name
        version: Project version string (informational)
        languages: Enabled toolchain languages (e.g. ("go", "odin"))
        build_dir: Directory for libraries, intermediates and checksums
        bin_dir: Directory for executables
    """

    name: str
    version: str
    languages: tuple[str, ...]
    build_dir: Path = Path("build")
    bin_dir: Path = Path("bin")

    @property
    def checksum_dir(self) -> Path:
        return self.build_dir / "checksums"


@dataclass(frozen=True)
class BuildOptions:
    """Per-run switches.

    Attributes:
        force: Rebuild every target regardless of checksums
        graph: Dump the dependency structure before building
        release: Ask toolchains for optimization flags
        ignore_fatal: Keep building independent targets after a build failure
        jobs: Number of targets built concurrently (1 = sequential)
        verbose: Verbose console output and debug logging
        targets: Names requested on the command line (empty = all)
    """

    force: bool = False
    graph: bool = False
    release: bool = False
    ignore_fatal: bool = False
    jobs: int = 1
    verbose: bool = False
    targets: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "BuildOptions":
        """Create options from parsed CLI arguments."""
        jobs = getattr(args, "jobs", 1)
        if jobs == 0:
            jobs = os.cpu_count() or 1
        return cls(
            force=getattr(args, "force", False),
            graph=getattr(args, "graph", False),
            release=getattr(args, "release", False),
            ignore_fatal=getattr(args, "ignore_fatal", False),
            jobs=jobs,
            verbose=getattr(args, "verbose", False),
            targets=tuple(getattr(args, "targets", None) or ()),
        )
