"""Target registry: the single owner of every declared target."""

import logging

from .errors import ConfigurationError, TargetNotFoundError
from .models import Target, TargetHandle

logger = logging.getLogger(__name__)


class TargetRegistry:
    """Ordered arena of targets with O(1) lookup by name.

    Targets are stored once. Dependents refer to them through TargetHandles,
    which carry the arena index and are checked against the stored name.

    Usage:
        registry = TargetRegistry()
        lib = registry.register(Target("lib", TargetKind.STATIC_LIB, ["a.go"], "build/liblib.a"))
        registry.register(Target("app", TargetKind.EXECUTABLE, ["main.go"], "bin/app", dependencies=[lib]))
    """

    def __init__(self) -> None:
        self._targets: list[Target] = []
        self._by_name: dict[str, int] = {}

    def register(self, target: Target) -> TargetHandle:
        """Add a target and return its handle.

        Raises:
            ConfigurationError: If the name is taken or a dependency handle
                does not belong to this registry.
        """
        if not target.name:
            raise ConfigurationError("Target name must not be empty")
        if target.name in self._by_name:
            raise ConfigurationError(f"Duplicate target name: {target.name}")
        for handle in target.dependencies:
            self._check_handle(handle, context=f"dependency of '{target.name}'")

        handle = TargetHandle(index=len(self._targets), name=target.name)
        self._targets.append(target)
        self._by_name[target.name] = handle.index
        logger.debug("Registered target %s (%s)", target.name, target.kind.value)
        return handle

    def _check_handle(self, handle: TargetHandle, context: str) -> None:
        if not isinstance(handle, TargetHandle):
            raise ConfigurationError(f"Invalid {context}: expected a TargetHandle, got {type(handle).__name__}")
        if (
            handle.index < 0
            or handle.index >= len(self._targets)
            or self._targets[handle.index].name != handle.name
        ):
            raise ConfigurationError(f"Invalid {context}: '{handle.name}' is not registered in this project")

    def resolve(self, handle: TargetHandle) -> Target:
        """Return the live target a handle points to."""
        self._check_handle(handle, context="handle")
        return self._targets[handle.index]

    def get(self, name: str) -> Target:
        """Return a target by name.

        Raises:
            TargetNotFoundError: If no target has that name.
        """
        index = self._by_name.get(name)
        if index is None:
            raise TargetNotFoundError(f"Target not found: {name}")
        return self._targets[index]

    def handle(self, name: str) -> TargetHandle:
        return TargetHandle(index=self._by_name[self.get(name).name], name=name)

    def dependencies_of(self, target: Target) -> list[Target]:
        """Resolve a target's dependency handles, duplicates removed."""
        seen: set[int] = set()
        deps = []
        for h in target.dependencies:
            if h.index not in seen:
                seen.add(h.index)
                deps.append(self.resolve(h))
        return deps

    def all(self) -> list[Target]:
        """All targets in declaration order."""
        return list(self._targets)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self):
        return iter(list(self._targets))
