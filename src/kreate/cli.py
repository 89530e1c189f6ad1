"""
Command-line interface for kreate.

Build scripts dispatch their own arguments through ``Project.run()``:

    python build.py build                 # Build everything
    python build.py build app             # Build app and its dependencies
    python build.py build -f              # Ignore checksums, rebuild all
    python build.py build -j 8            # Build up to 8 targets at once
    python build.py clean                 # Remove build and bin directories

The ``kreate`` console script runs ``build.py`` from the current directory
with the remaining arguments, so ``kreate build -r`` is equivalent to
``python build.py build -r``.
"""

import argparse
import logging
import os
import runpy
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from . import __version__, output
from .config import BuildOptions
from .errors import KreateError

if TYPE_CHECKING:
    from .project import Project

DEFAULT_SCRIPT = "build.py"


def create_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    """Create the argument parser for build-script command lines."""
    parser = argparse.ArgumentParser(
        prog=prog,
        description="kreate - dependency-aware incremental build scheduler",
    )
    parser.add_argument("--version", action="version", version=f"kreate {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser("build", help="Build all targets, or the named targets")
    build_parser.add_argument(
        "targets",
        nargs="*",
        help="Targets to build together with their dependencies (default: all)",
    )
    build_parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Rebuild every target regardless of checksums",
    )
    build_parser.add_argument(
        "-g",
        "--graph",
        action="store_true",
        help="Print the dependency graph before building",
    )
    build_parser.add_argument(
        "-r",
        "--release",
        action="store_true",
        help="Build with toolchain optimization flags",
    )
    build_parser.add_argument(
        "--ignore-fatal",
        action="store_true",
        help="Keep building independent targets after a build failure (targets depending on it are skipped)",
    )
    build_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="Number of targets to build in parallel (0 = CPU count, default: 1)",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    clean_parser = subparsers.add_parser("clean", help="Remove the build and bin directories")
    clean_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    return parser


def configure_logging(verbose: bool) -> None:
    """Route library diagnostics to stderr; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )
    output.set_verbose(verbose)
    if verbose:
        output.init_timer()


def dispatch(project: "Project", argv: list[str]) -> int:
    """Run one command line against a project.

    Custom subcommands registered with ``@project.command`` take precedence
    over the built-ins. With no subcommand a full build runs.

    Returns:
        Exit status: 0 on success, 1 on fatal errors or failed targets,
        130 on Ctrl-C.
    """
    if argv and argv[0] in project.commands:
        try:
            status = project.commands[argv[0]](project, argv[1:])
        except KreateError as e:
            output.log_fatal(e.tag, str(e))
            return 1
        return int(status or 0)

    if not argv or (argv[0].startswith("-") and argv[0] not in ("-h", "--help", "--version")):
        output.log_warn(
            "no subcommand given, executing default build\n"
            "    use `build`, `clean` or a custom command registered with project.command()"
        )
        argv = ["build", *argv]

    parser = create_parser(prog=Path(sys.argv[0]).name if sys.argv and sys.argv[0] else None)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = BuildOptions.from_namespace(args)
    except ValueError as e:
        output.log_fatal("CONFIG", str(e))
        return 1

    try:
        if args.command == "clean":
            project.clean()
            return 0

        result = project.build(options=options)
        return 0 if result.success else 1

    except KreateError as e:
        output.log_fatal(e.tag, str(e))
        return 1

    except KeyboardInterrupt:
        output.log_warn("Build interrupted")
        return 130


def main() -> None:
    """Entry point for the ``kreate`` console script.

    Runs the build script (``build.py`` by default) as ``__main__`` with the
    remaining arguments, so the script's ``project.run()`` sees them.
    """
    parser = argparse.ArgumentParser(
        prog="kreate",
        description="Run a kreate build script. Remaining arguments are forwarded to it.",
        epilog="Example: kreate build -r app",
    )
    parser.add_argument("--version", action="version", version=f"kreate {__version__}")
    parser.add_argument(
        "-C",
        "--directory",
        type=Path,
        default=Path.cwd(),
        help="Directory containing the build script (default: current directory)",
    )
    parser.add_argument(
        "--script",
        default=DEFAULT_SCRIPT,
        help=f"Build script file name (default: {DEFAULT_SCRIPT})",
    )
    args, forwarded = parser.parse_known_args()

    script = args.directory / args.script
    if not script.is_file():
        output.log_fatal("CONFIG", f"Build script not found: {script}")
        sys.exit(2)

    os.chdir(args.directory)
    sys.argv = [str(script.name), *forwarded]
    sys.path.insert(0, str(Path.cwd()))
    runpy.run_path(str(script.name), run_name="__main__")


if __name__ == "__main__":
    main()
