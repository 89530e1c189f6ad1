"""Incremental rebuild decisions.

A missing source is a resolution error. Otherwise a target must be rebuilt
when, checked in this order:
1. the force option is set,
2. its output does not exist,
3. any source's content hash differs from the stored record (or has none),
4. any of its dependencies was rebuilt earlier in this run.

Rule 4 only needs one hop because targets are visited in dependency order:
by the time a dependent is checked, every rebuilt dependency is recorded.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ResolutionError
from .models import Target
from .session import BuildSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """Whether to rebuild, and why."""

    rebuild: bool
    reason: str

    def __bool__(self) -> bool:
        return self.rebuild


UP_TO_DATE = Decision(rebuild=False, reason="up to date")


class RebuildDecider:
    """Answers must_rebuild() against one session."""

    def __init__(self, session: BuildSession) -> None:
        self.session = session

    def must_rebuild(self, target: Target) -> Decision:
        """Decide whether a target is stale.

        Every declared source must exist before any rule is applied, so a
        missing source is reported even when the output is missing or the
        build is forced.

        Raises:
            ResolutionError: If a declared source file does not exist.
        """
        for source in target.sources:
            if not Path(source).is_file():
                raise ResolutionError(f"Source file not found for target '{target.name}': {source}")

        if self.session.options.force:
            return Decision(True, "forced")

        # Targets without a declared artifact (e.g. delete_path) always run
        if not target.output:
            return Decision(True, "no output declared")
        if not Path(target.output).exists():
            return Decision(True, "output missing")

        for source in target.sources:
            try:
                changed = self.session.store.has_changed(source)
            except FileNotFoundError:
                raise ResolutionError(f"Source file not found for target '{target.name}': {source}") from None
            if changed:
                return Decision(True, f"{Path(source).name} changed")

        for dep_name in target.dependency_names:
            if self.session.was_rebuilt(dep_name):
                return Decision(True, f"dependency {dep_name} rebuilt")

        logger.debug("Target %s is up to date", target.name)
        return UP_TO_DATE

    def record_success(self, target: Target) -> None:
        """Persist fresh checksums for a rebuilt target and mark it rebuilt.

        Raises:
            ResolutionError: If a source vanished during the build.
        """
        try:
            self.session.store.update(target.sources)
        except FileNotFoundError as e:
            raise ResolutionError(f"Source file not found for target '{target.name}': {e.filename}") from None
        self.session.mark_rebuilt(target)
