"""Tests for the ``kreate`` console script that runs build.py."""

import sys
import textwrap

import pytest

from kreate.cli import create_parser, main

BUILD_SCRIPT = textwrap.dedent(
    """
    from pathlib import Path

    from kreate import Project

    project = Project("scripted", "0.1.0")


    def stamp(target):
        Path(target.output).write_text("stamped")
        return True


    project.callback_target("stamp", stamp, output_path="stamp.txt")
    project.run()
    """
)


@pytest.fixture
def script_dir(tmp_path, monkeypatch):
    (tmp_path / "build.py").write_text(BUILD_SCRIPT)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "path", list(sys.path))
    return tmp_path


class TestConsoleScript:
    def test_runs_build_script_with_forwarded_args(self, script_dir, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["kreate", "-C", str(script_dir), "build", "-f"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        assert (script_dir / "stamp.txt").read_text() == "stamped"

    def test_clean_through_script(self, script_dir, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["kreate", "clean"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        assert not (script_dir / "build").exists()

    def test_missing_script(self, tmp_path, monkeypatch, console_output):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(sys, "argv", ["kreate", "build"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2
        assert "[FATA] CONFIG: Build script not found" in console_output.getvalue()


class TestParser:
    def test_build_defaults(self):
        args = create_parser("build.py").parse_args(["build"])
        assert args.command == "build"
        assert args.targets == []
        assert args.jobs == 1
        assert not (args.force or args.graph or args.release or args.ignore_fatal or args.verbose)

    def test_long_options(self):
        args = create_parser().parse_args(
            ["build", "--force", "--graph", "--release", "--ignore-fatal", "--jobs", "8", "--verbose", "app"]
        )
        assert args.force and args.graph and args.release and args.ignore_fatal and args.verbose
        assert args.jobs == 8
        assert args.targets == ["app"]

    def test_clean_verbose(self):
        args = create_parser().parse_args(["clean", "-v"])
        assert args.command == "clean"
        assert args.verbose
