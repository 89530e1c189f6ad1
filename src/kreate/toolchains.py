"""Per-language command synthesis.

Each toolchain turns a built-in target (executable, static or dynamic
library) into the argv that builds it. Release mode appends the toolchain's
optimization flags. Languages without a toolchain here are built with custom
targets instead.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError
from .models import Target, TargetKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Language:
    """A toolchain language and the source extensions that select it."""

    name: str
    extensions: tuple[str, ...]


class Toolchain:
    """Base class for command synthesis."""

    language: Language
    release_flags: tuple[str, ...] = ()

    def build_command(self, target: Target, dependencies: list[Target], release: bool) -> list[str]:
        """Return the argv that builds ``target``.

        Args:
            target: The target to build
            dependencies: The target's resolved dependencies
            release: Whether to add optimization flags
        """
        raise NotImplementedError

    def flags(self, target: Target, release: bool) -> list[str]:
        flags = list(target.build_flags)
        if release:
            flags.extend(self.release_flags)
        return flags


def _library_link_name(output: str) -> str:
    """``build/libfoo.a`` -> ``foo``."""
    name = Path(output).name
    if name.startswith("lib"):
        name = name[3:]
    return Path(name).stem


class DToolchain(Toolchain):
    language = Language("d", (".d",))
    release_flags = ("-O", "-release")

    def build_command(self, target: Target, dependencies: list[Target], release: bool) -> list[str]:
        cmd = ["dmd", *self.flags(target, release)]

        if target.kind == TargetKind.STATIC_LIB:
            cmd.append("-lib")
        elif target.kind == TargetKind.DYNAMIC_LIB:
            cmd.append("-shared")

        cmd.append(f"-of={target.output}")
        cmd.extend(target.sources)

        for dep in dependencies:
            if dep.kind.is_library:
                cmd.append(f"-L-L{Path(dep.output).parent}")
                cmd.append(f"-L-l{_library_link_name(dep.output)}")

        return cmd


class GoToolchain(Toolchain):
    language = Language("go", (".go",))
    release_flags = ("-ldflags", "-s -w")

    def build_command(self, target: Target, dependencies: list[Target], release: bool) -> list[str]:
        # -C must come first; go resolves -o relative to it
        cmd = ["go", "build", "-C", target.main_dir, *self.flags(target, release)]

        if target.kind == TargetKind.DYNAMIC_LIB:
            cmd.append("-buildmode=c-shared")
        elif target.kind == TargetKind.STATIC_LIB:
            cmd.append("-buildmode=c-archive")

        cmd.extend(["-o", str(Path(target.output).resolve()), "."])
        return cmd


class OdinToolchain(Toolchain):
    language = Language("odin", (".odin",))
    release_flags = ("-o:speed",)

    def build_command(self, target: Target, dependencies: list[Target], release: bool) -> list[str]:
        cmd = ["odin", "build", target.main_dir, *self.flags(target, release)]

        if target.kind == TargetKind.STATIC_LIB:
            cmd.append("-build-mode:static")
        elif target.kind == TargetKind.DYNAMIC_LIB:
            cmd.append("-build-mode:shared")

        cmd.append(f"-out:{target.output}")

        for dep in dependencies:
            if dep.kind == TargetKind.STATIC_LIB:
                cmd.append(f"-library:{dep.output}")

        return cmd


TOOLCHAINS: dict[str, Toolchain] = {
    tc.language.name: tc for tc in (GoToolchain(), DToolchain(), OdinToolchain())
}


def supported_languages() -> list[str]:
    return list(TOOLCHAINS)


def check_languages(languages: list[str] | tuple[str, ...]) -> None:
    """Reject languages that have no toolchain.

    Raises:
        ConfigurationError: Listing every unsupported language.
    """
    unsupported = [lang for lang in languages if lang not in TOOLCHAINS]
    if unsupported:
        listing = "\n".join(f"  - {lang}" for lang in unsupported)
        raise ConfigurationError(
            f"use of unsupported language(s):\n{listing}\n"
            "To build an unsupported language, declare a custom target instead."
        )


def detect_language(sources: list[str], enabled: tuple[str, ...]) -> str:
    """Pick the toolchain language from the first source's extension.

    Raises:
        ConfigurationError: If there are no sources, or the extension maps to
            no enabled language.
    """
    if not sources:
        raise ConfigurationError("No source files specified")

    ext = Path(sources[0]).suffix
    for name in enabled:
        toolchain = TOOLCHAINS.get(name)
        if toolchain is not None and ext in toolchain.language.extensions:
            return name

    raise ConfigurationError(f"Unsupported or not enabled language detected: {ext.lstrip('.') or sources[0]}")


def get_toolchain(language: str) -> Toolchain:
    try:
        return TOOLCHAINS[language]
    except KeyError:
        raise ConfigurationError(f"Unsupported language: {language}") from None
