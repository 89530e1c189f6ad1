"""The build-script facing API.

A build script creates one Project, declares targets on it and hands control
to the command line:

    from kreate import Project

    project = Project("demo", "1.0.0", languages=["go"])
    lib = project.static_lib("util", ["src/util/util.go"])
    project.executable("demo", ["src/main/main.go"], dependencies=[lib])
    project.run()

Declaring a target only records it. Ordering, staleness checks and build
actions all happen in build(), which creates a fresh BuildSession per call.
"""

import logging
import shutil
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from . import output
from .checksums import RECORD_SUFFIX
from .actions import BuildCallback, CallbackAction, CommandAction
from .callbacks import ConsoleCallback, ProgressCallback
from .config import BuildOptions, ProjectConfig
from .errors import BuildFailure
from .files import ensure_managed_dir, infer_main_dir
from .graph import BuildGraph
from .models import BuildResult, BuildStatus, Target, TargetHandle, TargetKind
from .orchestrator import BuildOrchestrator, ParallelBuildOrchestrator
from .progress_display import BuildProgressDisplay
from .registry import TargetRegistry
from .session import BuildSession
from .toolchains import check_languages, detect_language

logger = logging.getLogger(__name__)

CommandHandler = Callable[["Project", list[str]], "int | None"]


def _dynamic_lib_name(name: str) -> str:
    if sys.platform == "win32":
        return f"{name}.dll"
    if sys.platform == "darwin":
        return f"lib{name}.dylib"
    return f"lib{name}.so"


class Project:
    """A kreate project: configuration, declared targets and custom commands.

    Args:
        name: Project name.
        version: Project version string.
        languages: Toolchain languages built-in targets may use ("go", "d", "odin").
        args: Command-line arguments for run(), without the program name.
            Defaults to sys.argv[1:] at run time.
        build_dir: Directory for libraries, intermediates and checksums.
        bin_dir: Directory for executables.

    Raises:
        ConfigurationError: If a language has no toolchain.
    """

    def __init__(
        self,
        name: str,
        version: str,
        languages: Sequence[str] = (),
        args: Sequence[str] | None = None,
        build_dir: Path | str = "build",
        bin_dir: Path | str = "bin",
    ) -> None:
        check_languages(list(languages))
        self.config = ProjectConfig(
            name=name,
            version=version,
            languages=tuple(languages),
            build_dir=Path(build_dir),
            bin_dir=Path(bin_dir),
        )
        self.args = list(args) if args is not None else None
        self.registry = TargetRegistry()
        self.commands: dict[str, CommandHandler] = {}

        ensure_managed_dir(self.config.build_dir)
        ensure_managed_dir(self.config.bin_dir)

    # Target declaration

    def _builtin(
        self,
        name: str,
        kind: TargetKind,
        sources: Sequence[str],
        output_path: Path,
        dependencies: Sequence[TargetHandle],
        flags: Sequence[str],
        import_paths: Sequence[str],
    ) -> TargetHandle:
        sources = [str(s) for s in sources]
        language = detect_language(sources, self.config.languages)
        target = Target(
            name=name,
            kind=kind,
            sources=sources,
            output=str(output_path),
            dependencies=list(dependencies),
            build_flags=list(flags),
            main_dir=infer_main_dir(sources),
            language=language,
            import_paths=list(import_paths),
        )
        return self.registry.register(target)

    def executable(
        self,
        name: str,
        sources: Sequence[str],
        dependencies: Sequence[TargetHandle] = (),
        flags: Sequence[str] = (),
        import_paths: Sequence[str] = (),
    ) -> TargetHandle:
        """Declare an executable, written to ``<bin_dir>/<name>``."""
        filename = f"{name}.exe" if sys.platform == "win32" else name
        return self._builtin(
            name, TargetKind.EXECUTABLE, sources, self.config.bin_dir / filename, dependencies, flags, import_paths
        )

    def static_lib(
        self,
        name: str,
        sources: Sequence[str],
        dependencies: Sequence[TargetHandle] = (),
        flags: Sequence[str] = (),
        import_paths: Sequence[str] = (),
    ) -> TargetHandle:
        """Declare a static library, written to ``<build_dir>/lib<name>.a``."""
        return self._builtin(
            name,
            TargetKind.STATIC_LIB,
            sources,
            self.config.build_dir / f"lib{name}.a",
            dependencies,
            flags,
            import_paths,
        )

    def dynamic_lib(
        self,
        name: str,
        sources: Sequence[str],
        dependencies: Sequence[TargetHandle] = (),
        flags: Sequence[str] = (),
        import_paths: Sequence[str] = (),
    ) -> TargetHandle:
        """Declare a shared library (.so, .dylib or .dll by platform) in build_dir."""
        return self._builtin(
            name,
            TargetKind.DYNAMIC_LIB,
            sources,
            self.config.build_dir / _dynamic_lib_name(name),
            dependencies,
            flags,
            import_paths,
        )

    def custom_target(
        self,
        name: str,
        sources: Sequence[str],
        output_path: Path | str,
        command: Sequence[str],
        dependencies: Sequence[TargetHandle] = (),
        cwd: Path | str | None = None,
    ) -> TargetHandle:
        """Declare a target built by an explicit command.

        Use this for any language without a built-in toolchain.
        """
        sources = [str(s) for s in sources]
        target = Target(
            name=name,
            kind=TargetKind.CUSTOM,
            sources=sources,
            output=str(output_path),
            dependencies=list(dependencies),
            action=CommandAction(command, cwd=Path(cwd) if cwd is not None else None),
            main_dir=infer_main_dir(sources),
        )
        return self.registry.register(target)

    def callback_target(
        self,
        name: str,
        callback: BuildCallback,
        sources: Sequence[str] = (),
        output_path: Path | str | None = None,
        dependencies: Sequence[TargetHandle] = (),
    ) -> TargetHandle:
        """Declare a target built by a Python function.

        The callback receives the Target and fails by returning False or
        raising. A target without ``output_path`` runs on every build.
        """
        sources = [str(s) for s in sources]
        target = Target(
            name=name,
            kind=TargetKind.CUSTOM,
            sources=sources,
            output=str(output_path) if output_path is not None else "",
            dependencies=list(dependencies),
            action=CallbackAction(callback),
            main_dir=infer_main_dir(sources),
        )
        return self.registry.register(target)

    def copy_file(
        self,
        src: Path | str,
        dst: Path | str,
        dependencies: Sequence[TargetHandle] = (),
        name: str | None = None,
    ) -> TargetHandle:
        """Declare a target that copies ``src`` to ``dst``.

        ``src`` may be produced by one of the dependencies.
        """

        def copy(target: Target) -> bool:
            Path(dst).parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
            return True

        return self.callback_target(
            name or f"copy-{Path(dst).name}",
            copy,
            sources=[str(src)],
            output_path=dst,
            dependencies=dependencies,
        )

    def delete_path(
        self,
        path: Path | str,
        dependencies: Sequence[TargetHandle] = (),
        name: str | None = None,
    ) -> TargetHandle:
        """Declare a target that removes a file or directory tree.

        Runs on every build, after its dependencies.
        """

        def delete(target: Target) -> bool:
            p = Path(path)
            if p.is_dir() and not p.is_symlink():
                shutil.rmtree(p)
            elif p.exists() or p.is_symlink():
                p.unlink()
            return True

        return self.callback_target(name or f"delete-{Path(path).name}", delete, dependencies=dependencies)

    def command(self, name: str) -> Callable[[CommandHandler], CommandHandler]:
        """Register a custom subcommand; it overrides built-ins of the same name.

        The handler receives the project and the arguments after the
        subcommand, and may return an exit status.

            @project.command("test")
            def run_tests(project, args):
                ...
        """

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.commands[name] = handler
            return handler

        return decorator

    # Operations

    def target(self, name: str) -> Target:
        return self.registry.get(name)

    def graph(self) -> BuildGraph:
        return BuildGraph.from_registry(self.registry)

    def build(
        self,
        targets: Sequence[str] = (),
        options: BuildOptions | None = None,
        callback: ProgressCallback | None = None,
    ) -> BuildResult:
        """Build every target, or the named targets and their dependencies.

        Args:
            targets: Names to build. Empty builds everything; options.targets
                is used when this is empty.
            options: Per-run switches (force, release, jobs, ...).
            callback: Progress receiver. Defaults to console logging, or to a
                live table for parallel builds on a terminal.

        Returns:
            The BuildResult. A BEST_EFFORT result (ignore_fatal with failures)
            is returned, not raised.

        Raises:
            CycleDetectedError: If the dependency graph has a cycle. Nothing is built.
            TargetNotFoundError: If a requested name is not registered.
            ResolutionError: If a declared source file is missing.
            BuildFailure: If a target failed and ignore_fatal is not set.
        """
        options = options if options is not None else BuildOptions()
        names = list(targets) or list(options.targets)

        graph = self.graph()
        if options.graph:
            output.print_graph(graph.describe())
        for base_name, users in graph.shared_checksum_names().items():
            listing = ", ".join(f"{source} ({target})" for target, source in users)
            output.log_warn(f"Sources share the checksum record {base_name}{RECORD_SUFFIX}: {listing}")

        order = graph.schedule_subset(names) if names else graph.schedule()
        session = BuildSession(self.registry, self.config, options)

        display: BuildProgressDisplay | None = None
        if callback is None:
            if options.jobs > 1 and output.get_console().is_terminal:
                display = BuildProgressDisplay(output.get_console(), self.config.name)
                for target in order:
                    display.register_target(target.name)
                callback = display
            else:
                callback = ConsoleCallback()

        if options.jobs > 1:
            orchestrator: BuildOrchestrator = ParallelBuildOrchestrator(session, options.jobs, callback)
        else:
            orchestrator = BuildOrchestrator(session, callback)

        if display is not None:
            with display:
                result = orchestrator.run(order)
            for failure in result.failed:
                output.log_target_failed(failure.name, failure.output)
        else:
            result = orchestrator.run(order)

        self._report(result)
        return result

    def _report(self, result: BuildResult) -> None:
        if result.status == BuildStatus.FAILED:
            names = [o.name for o in result.failed]
            raise BuildFailure(f"Build failed for target: {', '.join(names)}", failed=names, result=result)

        if result.status == BuildStatus.BEST_EFFORT:
            output.log_warn(
                f"Build finished with {len(result.failed)} failed and {len(result.blocked)} skipped target(s)"
            )
            for outcome in result.failed:
                output.log_error(f"Build failed for target: {outcome.name}")
            for outcome in result.blocked:
                output.log_warn(f"Skipped target {outcome.name}: {outcome.reason}")
            return

        output.log_info("Build completed successfully")

    def clean(self) -> None:
        """Remove the build and bin directories, checksums included."""
        for directory, label in ((self.config.build_dir, "build"), (self.config.bin_dir, "bin")):
            if directory.exists():
                shutil.rmtree(directory)
                output.log_info(f"Removed {label} directory: {directory}")
        output.log_info("Clean completed successfully")

    def main(self, argv: Sequence[str] | None = None) -> int:
        """Dispatch a command line and return the exit status."""
        from .cli import dispatch

        if argv is None:
            argv = self.args if self.args is not None else sys.argv[1:]
        return dispatch(self, list(argv))

    def run(self, argv: Sequence[str] | None = None) -> None:
        """Dispatch the command line and exit with its status."""
        sys.exit(self.main(argv))

    def __repr__(self) -> str:
        return f"Project({self.config.name!r}, targets={len(self.registry)})"
