"""Tests for build-script command dispatch (``project.run()`` / ``project.main()``)."""

import pytest

from kreate import Project
from kreate.config import BuildOptions
from kreate.errors import ResolutionError
from kreate.models import BuildResult, BuildStatus


@pytest.fixture
def lib_app(project, recorder, write_source, tmp_path):
    lib = project.callback_target(
        "lib", recorder.action(), sources=[write_source("a.c", "a\n")], output_path=tmp_path / "out" / "liblib.a"
    )
    project.callback_target(
        "app",
        recorder.action(),
        sources=[write_source("main.c", "m\n")],
        output_path=tmp_path / "out" / "app",
        dependencies=[lib],
    )
    return project


class TestBuildCommand:
    def test_build(self, lib_app, recorder, console_output):
        assert lib_app.main(["build"]) == 0
        assert recorder.built == ["lib", "app"]
        assert "[INFO] Build completed successfully" in console_output.getvalue()

    def test_no_subcommand_builds_with_warning(self, lib_app, recorder, console_output):
        assert lib_app.main([]) == 0
        assert recorder.built == ["lib", "app"]
        assert "no subcommand given, executing default build" in console_output.getvalue()

    def test_leading_flag_implies_build(self, lib_app, recorder):
        lib_app.main(["build"])
        recorder.reset()
        assert lib_app.main(["-f"]) == 0
        assert recorder.built == ["lib", "app"]

    def test_flags_map_to_options(self, project, monkeypatch):
        seen = []

        def fake_build(targets=(), options=None, callback=None):
            seen.append(options)
            return BuildResult(outcomes=[], total_elapsed=0.0, status=BuildStatus.SUCCESS)

        monkeypatch.setattr(project, "build", fake_build)

        status = project.main(["build", "app", "lib", "-f", "-g", "-r", "--ignore-fatal", "-j", "4"])

        assert status == 0
        assert seen == [
            BuildOptions(
                force=True, graph=True, release=True, ignore_fatal=True, jobs=4, targets=("app", "lib")
            )
        ]

    def test_named_target(self, lib_app, recorder):
        assert lib_app.main(["build", "lib"]) == 0
        assert recorder.built == ["lib"]

    def test_graph_dump(self, lib_app, console_output):
        assert lib_app.main(["build", "-g"]) == 0
        assert "Dependency graph" in console_output.getvalue()

    def test_verbose_shows_timestamps_and_reasons(self, lib_app, console_output):
        assert lib_app.main(["build", "-v"]) == 0
        text = console_output.getvalue()
        assert "[DEBG] Building target: lib (output missing)" in text
        assert "(output missing)" in text

    def test_parallel(self, lib_app, recorder):
        assert lib_app.main(["build", "-j", "0"]) == 0
        assert recorder.built == ["lib", "app"]

    def test_project_args_used_by_default(self, tmp_path, recorder):
        project = Project("demo", "1.0", args=["clean"], build_dir=tmp_path / "b", bin_dir=tmp_path / "x")
        assert project.main() == 0
        assert not (tmp_path / "b").exists()


class TestFatalErrors:
    def test_build_failure(self, project, recorder, write_source, tmp_path, console_output):
        project.callback_target(
            "bad", recorder.action(fail=True), sources=[write_source("b.c", "b\n")], output_path=tmp_path / "bad"
        )
        assert project.main(["build"]) == 1
        assert "[FATA] BUILD: Build failed for target: bad" in console_output.getvalue()

    def test_best_effort_still_exits_nonzero(self, project, recorder, write_source, tmp_path, console_output):
        project.callback_target(
            "bad", recorder.action(fail=True), sources=[write_source("b.c", "b\n")], output_path=tmp_path / "bad"
        )
        project.callback_target(
            "good", recorder.action(), sources=[write_source("g.c", "g\n")], output_path=tmp_path / "good"
        )
        assert project.main(["build", "--ignore-fatal"]) == 1
        assert "good" in recorder.built
        assert "[FATA]" not in console_output.getvalue()

    def test_cycle(self, lib_app, recorder, console_output):
        lib_app.target("lib").dependencies.append(lib_app.registry.handle("app"))
        assert lib_app.main(["build"]) == 1
        assert "[FATA] CYCLE: Circular dependency detected among targets: lib, app" in console_output.getvalue()
        assert recorder.built == []

    def test_unknown_target(self, lib_app, console_output):
        assert lib_app.main(["build", "nope"]) == 1
        assert "[FATA] NOT_FOUND: Target not found: nope" in console_output.getvalue()

    def test_negative_jobs(self, lib_app, console_output):
        assert lib_app.main(["build", "-j", "-2"]) == 1
        assert "[FATA] CONFIG: jobs must be at least 1" in console_output.getvalue()

    def test_missing_source(self, project, recorder, tmp_path, console_output):
        out = tmp_path / "stale"
        out.write_text("old")
        project.callback_target("x", recorder.action(), sources=[str(tmp_path / "gone.c")], output_path=out)
        assert project.main(["build"]) == 1
        assert "[FATA] RESOLVE: Source file not found for target 'x'" in console_output.getvalue()

    def test_keyboard_interrupt(self, project):
        def interrupted(target):
            raise KeyboardInterrupt

        project.callback_target("slow", interrupted)
        assert project.main(["build"]) == 130

    def test_run_exits_with_status(self, project, recorder, write_source, tmp_path):
        project.callback_target(
            "bad", recorder.action(fail=True), sources=[write_source("b.c", "b\n")], output_path=tmp_path / "bad"
        )
        with pytest.raises(SystemExit) as exc_info:
            project.run(["build"])
        assert exc_info.value.code == 1


class TestOtherCommands:
    def test_clean(self, lib_app, tmp_path, console_output):
        lib_app.main(["build"])
        assert lib_app.main(["clean"]) == 0
        assert not (tmp_path / "build").exists()
        assert "Removed build directory" in console_output.getvalue()

    def test_custom_command_receives_remaining_args(self, project):
        received = []

        @project.command("test")
        def run_tests(proj, args):
            received.append((proj, args))
            return 3

        assert project.main(["test", "--fast", "unit"]) == 3
        assert received == [(project, ["--fast", "unit"])]

    def test_custom_command_none_is_success(self, project):
        project.command("noop")(lambda proj, args: None)
        assert project.main(["noop"]) == 0

    def test_custom_command_overrides_builtin(self, project, tmp_path):
        calls = []
        project.command("clean")(lambda proj, args: calls.append(args))
        assert project.main(["clean"]) == 0
        assert calls == [[]]
        assert (tmp_path / "build").exists()

    def test_custom_command_fatal_error(self, project, console_output):
        def deploy(proj, args):
            raise ResolutionError("could not find: deploy.toml")

        project.command("deploy")(deploy)
        assert project.main(["deploy"]) == 1
        assert "[FATA] RESOLVE: could not find: deploy.toml" in console_output.getvalue()

    def test_version(self, project, capsys):
        with pytest.raises(SystemExit) as exc_info:
            project.main(["--version"])
        assert exc_info.value.code == 0
        assert "kreate 0.1.0" in capsys.readouterr().out
