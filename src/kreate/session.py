"""Per-run build context.

A BuildSession is created fresh for every build run and handed to each
component. It replaces process-wide state, so repeated or concurrent builds
(for example in tests) never see each other's bookkeeping.
"""

import threading

from .checksums import ChecksumStore
from .config import BuildOptions, ProjectConfig
from .models import Target
from .registry import TargetRegistry


class BuildSession:
    """Everything one run needs, plus the names built and rebuilt so far.

    Thread-safe: the rebuilt/built sets are guarded by a lock. The registry
    is read-only once a run has started.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        config: ProjectConfig,
        options: BuildOptions,
        store: ChecksumStore | None = None,
    ) -> None:
        self.registry = registry
        self.config = config
        self.options = options
        self.store = store if store is not None else ChecksumStore(config.build_dir)
        self._rebuilt: set[str] = set()
        self._built: set[str] = set()
        self._lock = threading.Lock()

    def mark_rebuilt(self, target: Target) -> None:
        with self._lock:
            self._rebuilt.add(target.name)
            self._built.add(target.name)

    def mark_built(self, target: Target) -> None:
        with self._lock:
            self._built.add(target.name)

    def was_rebuilt(self, name: str) -> bool:
        with self._lock:
            return name in self._rebuilt

    @property
    def rebuilt(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._rebuilt)

    @property
    def built(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._built)
