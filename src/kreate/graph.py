"""Dependency graph and topological scheduler.

Builds name-keyed forward and reverse adjacency from the registry and
produces a deterministic build order with Kahn's algorithm. The graph is
derived fresh for every run and never persisted.
"""

import logging
import os
from collections import deque
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .errors import CycleDetectedError, TargetNotFoundError
from .models import Target
from .registry import TargetRegistry

logger = logging.getLogger(__name__)


class BuildGraph:
    """Forward and reverse dependency indices over a set of targets.

    Attributes:
        targets: Targets in declaration order
        targets_by_name: name -> Target
        dependencies: name -> dependency names (declaration order, no duplicates)
        dependents: name -> targets that declare it as a dependency
    """

    def __init__(self, targets: list[Target]) -> None:
        self.targets = list(targets)
        self.targets_by_name: dict[str, Target] = {t.name: t for t in self.targets}
        self.dependencies: dict[str, list[str]] = {}
        self.dependents: dict[str, list[Target]] = {t.name: [] for t in self.targets}

        for target in self.targets:
            dep_names = target.dependency_names
            self.dependencies[target.name] = dep_names
            for dep_name in dep_names:
                if dep_name not in self.targets_by_name:
                    raise TargetNotFoundError(f"Target '{target.name}' depends on unknown target '{dep_name}'")
                self.dependents[dep_name].append(target)

    @classmethod
    def from_registry(cls, registry: TargetRegistry) -> "BuildGraph":
        return cls(registry.all())

    def schedule(self) -> list[Target]:
        """Order every target after all of its dependencies.

        Ready targets are emitted FIFO, seeded and released in declaration
        order, so a fixed graph always yields the same order.

        Raises:
            CycleDetectedError: If some targets can never become ready.
                No partial order is returned.
        """
        remaining: dict[str, set[str]] = {name: set(deps) for name, deps in self.dependencies.items()}
        queue: deque[Target] = deque(t for t in self.targets if not remaining[t.name])
        order: list[Target] = []

        while queue:
            current = queue.popleft()
            order.append(current)
            for dependent in self.dependents[current.name]:
                pending = remaining[dependent.name]
                pending.discard(current.name)
                if not pending:
                    queue.append(dependent)

        if len(order) != len(self.targets):
            scheduled = {t.name for t in order}
            unscheduled = [t.name for t in self.targets if t.name not in scheduled]
            raise CycleDetectedError(
                f"Circular dependency detected among targets: {', '.join(unscheduled)}",
                unscheduled=unscheduled,
            )

        logger.debug("Build order: %s", [t.name for t in order])
        return order

    def closure(self, names: Iterable[str]) -> set[str]:
        """Collect the named targets and everything they depend on.

        Raises:
            TargetNotFoundError: If a name is not part of the graph.
        """
        collected: set[str] = set()
        for name in names:
            if name not in self.targets_by_name:
                raise TargetNotFoundError(f"Target not found: {name}")
            stack = [name]
            while stack:
                current = stack.pop()
                if current in collected:
                    continue
                collected.add(current)
                stack.extend(self.dependencies[current])
        return collected

    def schedule_subset(self, names: Iterable[str]) -> list[Target]:
        """Build order restricted to the closure of the named targets.

        Filters the full order, so relative order is unchanged and cycles
        anywhere in the graph are still reported.
        """
        wanted = self.closure(names)
        return [t for t in self.schedule() if t.name in wanted]

    def transitive_dependents(self, name: str) -> set[str]:
        """Every target that depends on ``name`` directly or indirectly."""
        found: set[str] = set()
        stack = [name]
        while stack:
            for dependent in self.dependents[stack.pop()]:
                if dependent.name not in found:
                    found.add(dependent.name)
                    stack.append(dependent.name)
        return found

    def shared_checksum_names(self) -> dict[str, list[tuple[str, str]]]:
        """Source base names whose checksum record is shared.

        Records are keyed by base name, so a name declared through more than
        one path, or by more than one target, lets one rebuild overwrite the
        record another target compares against.

        Returns:
            base name -> (target name, source path) pairs, declaration order
        """
        users: dict[str, list[tuple[str, str]]] = {}
        for target in self.targets:
            for source in dict.fromkeys(target.sources):
                users.setdefault(Path(source).name, []).append((target.name, source))
        return {
            name: pairs
            for name, pairs in users.items()
            if len({os.path.normpath(p) for _, p in pairs}) > 1 or len({t for t, _ in pairs}) > 1
        }

    def describe(self) -> dict[str, dict[str, Any]]:
        """Dependency and dependents structure, for the graph dump."""
        return {
            t.name: {
                "kind": t.kind.value,
                "output": t.output,
                "dependencies": list(self.dependencies[t.name]),
                "dependents": [d.name for d in self.dependents[t.name]],
            }
            for t in self.targets
        }
