"""Build orchestrators: walk the scheduled targets and run their actions.

Two implementations share the per-target logic:

- BuildOrchestrator: strictly sequential, one target at a time in build order.
- ParallelBuildOrchestrator: wavefront scheduler over a thread pool. A target
  is submitted as soon as every dependency finished successfully.

Failure policy (both):
- A failed build action stops the run: nothing new starts, in-flight parallel
  builds finish, and the result status is FAILED.
- With ignore_fatal the run keeps going, but targets depending on a failed
  target (directly or transitively) are BLOCKED instead of being built
  against a missing or stale artifact. The result status is BEST_EFFORT.
- Configuration and resolution errors are never ignored; they propagate.
"""

import logging
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from .actions import BuildAction, CommandAction
from .callbacks import NullCallback, ProgressCallback
from .decision import RebuildDecider
from .errors import ConfigurationError, KreateError
from .graph import BuildGraph
from .models import BuildResult, BuildStatus, Target, TargetKind, TargetOutcome, TargetState
from .session import BuildSession
from .toolchains import get_toolchain

logger = logging.getLogger(__name__)


class BuildOrchestrator:
    """Sequential orchestrator.

    Args:
        session: The per-run build session.
        callback: Receives every target state change.
    """

    def __init__(self, session: BuildSession, callback: ProgressCallback | None = None) -> None:
        self.session = session
        self.decider = RebuildDecider(session)
        self.callback = callback if callback is not None else NullCallback()

    def resolve_action(self, target: Target) -> BuildAction:
        """Return the action that builds a target.

        Custom and callback targets carry their own action. Built-in kinds
        get a command synthesized by their language's toolchain.
        """
        if target.action is not None:
            return target.action
        if target.kind == TargetKind.CUSTOM or target.language is None:
            raise ConfigurationError(f"Target '{target.name}' has no build action")

        toolchain = get_toolchain(target.language)
        dependencies = self.session.registry.dependencies_of(target)
        argv = toolchain.build_command(target, dependencies, self.session.options.release)
        return CommandAction(argv)

    def build_target(self, target: Target, outcome: TargetOutcome) -> bool:
        """Decide, build if stale, and record the result.

        Returns:
            True if the target is up to date or was rebuilt successfully.

        Raises:
            ResolutionError: If a source file is missing.
            ConfigurationError: If the target has no usable build action.
        """
        decision = self.decider.must_rebuild(target)
        if not decision:
            outcome.finish(TargetState.UP_TO_DATE, reason=decision.reason)
            self.session.mark_built(target)
            self.callback.on_progress(target.name, TargetState.UP_TO_DATE, decision.reason, 0.0)
            return True

        action = self.resolve_action(target)
        outcome.mark_started()
        outcome.reason = decision.reason
        self.callback.on_progress(target.name, TargetState.BUILDING, decision.reason, 0.0)
        logger.debug("Building %s: %s (%s)", target.name, action.describe(), decision.reason)

        result = action.execute(target)
        outcome.update_elapsed()

        if not result.success:
            outcome.finish(TargetState.FAILED, output=result.output)
            self.callback.on_progress(target.name, TargetState.FAILED, result.output, outcome.elapsed)
            return False

        self.decider.record_success(target)
        outcome.finish(TargetState.BUILT, output=result.output)
        self.callback.on_progress(target.name, TargetState.BUILT, decision.reason, outcome.elapsed)
        return True

    def _block(self, outcome: TargetOutcome, failed_dependency: str) -> None:
        reason = f"dependency {failed_dependency} failed"
        outcome.finish(TargetState.BLOCKED, reason=reason)
        self.callback.on_progress(outcome.name, TargetState.BLOCKED, reason, 0.0)

    def _result(self, outcomes: list[TargetOutcome], start_time: float) -> BuildResult:
        if not any(o.state == TargetState.FAILED for o in outcomes):
            status = BuildStatus.SUCCESS
        elif self.session.options.ignore_fatal:
            status = BuildStatus.BEST_EFFORT
        else:
            status = BuildStatus.FAILED
        return BuildResult(outcomes=outcomes, total_elapsed=time.monotonic() - start_time, status=status)

    def run(self, ordered_targets: list[Target]) -> BuildResult:
        """Build targets in the given order.

        Args:
            ordered_targets: Targets sorted so dependencies come first.

        Returns:
            BuildResult with one outcome per target. Targets not reached
            after an abort stay WAITING.
        """
        start_time = time.monotonic()
        outcomes = [TargetOutcome(t.name) for t in ordered_targets]
        unusable: set[str] = set()

        for target, outcome in zip(ordered_targets, outcomes):
            blocker = next((d for d in target.dependency_names if d in unusable), None)
            if blocker is not None:
                self._block(outcome, blocker)
                unusable.add(target.name)
                continue

            if not self.build_target(target, outcome):
                unusable.add(target.name)
                if not self.session.options.ignore_fatal:
                    logger.debug("Aborting run after failure of %s", target.name)
                    break

        return self._result(outcomes, start_time)


class ParallelBuildOrchestrator(BuildOrchestrator):
    """Wavefront orchestrator backed by a ThreadPoolExecutor.

    Keeps a remaining-dependency set per target; a target is submitted once
    that set is empty, which only happens after every dependency completed
    successfully.

    Args:
        session: The per-run build session.
        jobs: Maximum number of targets building at once.
        callback: Receives every target state change (from worker threads).
    """

    def __init__(self, session: BuildSession, jobs: int, callback: ProgressCallback | None = None) -> None:
        super().__init__(session, callback)
        self.jobs = jobs

    def run(self, ordered_targets: list[Target]) -> BuildResult:
        start_time = time.monotonic()
        graph = BuildGraph(ordered_targets)
        outcomes = {t.name: TargetOutcome(t.name) for t in ordered_targets}
        remaining = {name: set(deps) for name, deps in graph.dependencies.items()}
        ready: deque[Target] = deque(t for t in ordered_targets if not remaining[t.name])

        stopping = False
        fatal_error: KreateError | None = None
        active: dict[Future[bool], Target] = {}

        with ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="kreate-build") as executor:
            try:
                while active or (ready and not stopping):
                    while ready and not stopping and len(active) < self.jobs:
                        target = ready.popleft()
                        active[executor.submit(self.build_target, target, outcomes[target.name])] = target

                    done, _ = wait(active, return_when=FIRST_COMPLETED)
                    for future in done:
                        target = active.pop(future)
                        try:
                            ok = future.result()
                        except KreateError as e:
                            # Configuration/resolution errors are always fatal
                            fatal_error = fatal_error or e
                            stopping = True
                            continue

                        if ok:
                            for dependent in graph.dependents[target.name]:
                                pending = remaining[dependent.name]
                                pending.discard(target.name)
                                if not pending:
                                    ready.append(dependent)
                        elif self.session.options.ignore_fatal:
                            self._block_dependents(graph, target.name, outcomes)
                        else:
                            stopping = True
            except KeyboardInterrupt:
                for future in active:
                    future.cancel()
                raise

        if fatal_error is not None:
            raise fatal_error

        return self._result([outcomes[t.name] for t in ordered_targets], start_time)

    def _block_dependents(self, graph: BuildGraph, failed: str, outcomes: dict[str, TargetOutcome]) -> None:
        for name in graph.transitive_dependents(failed):
            outcome = outcomes[name]
            if outcome.state == TargetState.WAITING:
                self._block(outcome, failed)
