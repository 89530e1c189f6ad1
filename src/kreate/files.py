"""File system helpers for build scripts."""

import logging
import os
from pathlib import Path

from .errors import ResolutionError

logger = logging.getLogger(__name__)

GITIGNORE_CONTENT = "# This file is autogenerated by kreate, any edits will be overwritten!\n*"


def ensure_managed_dir(path: Path) -> None:
    """Create a directory and drop a self-ignoring .gitignore into it.

    The ``*`` pattern makes git ignore the whole directory from within, so no
    entry in the repository's own .gitignore is needed.
    """
    path.mkdir(parents=True, exist_ok=True)
    (path / ".gitignore").write_text(GITIGNORE_CONTENT, encoding="utf-8")


def infer_main_dir(sources: list[str]) -> str:
    """Directory of the first source file, or "." when there are none."""
    if not sources:
        return "."
    return os.path.dirname(sources[0]) or "."


def find_file(name: str, root: Path | None = None) -> str:
    """Find a file by path, or by base name anywhere below ``root``.

    Args:
        name: Relative path or bare file name
        root: Directory to search (defaults to the current directory)

    Returns:
        Absolute, normalized path of the first match

    Raises:
        ResolutionError: If nothing matches.
    """
    base = root if root is not None else Path.cwd()
    direct = base / name
    if direct.is_file():
        return os.path.normpath(direct.absolute())

    wanted = Path(name).name
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames.sort()
        if wanted in filenames:
            return os.path.normpath(Path(dirpath, wanted).absolute())

    raise ResolutionError(
        f"could not find: {name} in {base}, ensure the file exists or use a simple relative path"
    )


def find_global(name: str, env_var: str = "INCLUDE") -> str:
    """Find a file in the directories listed by an environment variable.

    Raises:
        ResolutionError: If the variable is unset/empty or no directory has the file.
    """
    search_paths = os.environ.get(env_var, "")
    if not search_paths:
        raise ResolutionError(f"Environment variable {env_var} is not set or is empty")

    for directory in search_paths.split(os.pathsep):
        if not directory:
            continue
        candidate = Path(directory) / name
        if candidate.is_file():
            logger.debug("Found %s in %s", name, directory)
            return os.path.normpath(candidate.absolute())

    raise ResolutionError(f"Could not find: {name} in any of the directories in {env_var}")
