"""Tests for the thread-pool wavefront orchestrator."""

import io

import pytest
from rich.console import Console

from kreate import output
from kreate.config import BuildOptions
from kreate.errors import BuildFailure, ResolutionError
from kreate.models import BuildStatus, TargetState


def _declare(project, recorder, write_source, tmp_path, layout, delay=0.05, failing=()):
    handles = {}
    for name, deps in layout:
        handles[name] = project.callback_target(
            name,
            recorder.action(fail=name in failing, delay=delay),
            sources=[write_source(f"{name}.c", f"/* {name} */\n")],
            output_path=tmp_path / "out" / name,
            dependencies=[handles[d] for d in deps],
        )
    return handles


DIAMOND = [("root", []), ("left", ["root"]), ("right", ["root"]), ("bottom", ["left", "right"])]


class TestParallelOrdering:
    def test_dependencies_finish_before_dependents_start(self, project, recorder, write_source, tmp_path):
        _declare(project, recorder, write_source, tmp_path, DIAMOND)

        result = project.build(options=BuildOptions(jobs=4))

        assert result.status == BuildStatus.SUCCESS
        assert sorted(recorder.built) == ["bottom", "left", "right", "root"]
        spans = recorder.spans
        for name, deps in DIAMOND:
            for dep in deps:
                assert spans[dep][1] <= spans[name][0], f"{name} started before {dep} finished"

    def test_independent_targets_overlap(self, project, recorder, write_source, tmp_path):
        _declare(project, recorder, write_source, tmp_path, [("a", []), ("b", [])], delay=0.3)

        project.build(options=BuildOptions(jobs=2))

        (a_start, a_end), (b_start, b_end) = recorder.spans["a"], recorder.spans["b"]
        assert a_start < b_end and b_start < a_end

    def test_outcomes_follow_schedule_order(self, project, recorder, write_source, tmp_path):
        _declare(project, recorder, write_source, tmp_path, DIAMOND)
        result = project.build(options=BuildOptions(jobs=3))
        assert [o.name for o in result.outcomes] == ["root", "left", "right", "bottom"]

    def test_second_run_up_to_date(self, project, recorder, write_source, tmp_path):
        _declare(project, recorder, write_source, tmp_path, DIAMOND, delay=0)
        project.build(options=BuildOptions(jobs=4))
        recorder.reset()

        result = project.build(options=BuildOptions(jobs=4))

        assert recorder.built == []
        assert len(result.up_to_date_names) == 4

    def test_change_propagates(self, project, recorder, write_source, tmp_path):
        _declare(project, recorder, write_source, tmp_path, DIAMOND, delay=0)
        project.build(options=BuildOptions(jobs=4))
        recorder.reset()
        (tmp_path / "src" / "left.c").write_text("/* edited */\n")

        result = project.build(options=BuildOptions(jobs=4))

        assert sorted(recorder.built) == ["bottom", "left"]
        assert result.outcome("bottom").reason == "dependency left rebuilt"


class TestParallelFailures:
    LAYOUT = [("bad", []), ("after_bad", ["bad"]), ("good", []), ("after_good", ["good"])]

    def test_fail_fast_starts_nothing_new(self, project, recorder, write_source, tmp_path):
        _declare(project, recorder, write_source, tmp_path, self.LAYOUT, delay=0, failing={"bad"})

        with pytest.raises(BuildFailure) as exc_info:
            project.build(options=BuildOptions(jobs=2))

        result = exc_info.value.result
        assert result.outcome("bad").state == TargetState.FAILED
        assert result.outcome("after_bad").state == TargetState.WAITING
        assert "after_bad" not in recorder.built

    def test_ignore_fatal_blocks_transitive_dependents(self, project, recorder, write_source, tmp_path):
        layout = self.LAYOUT + [("far", ["after_bad"])]
        _declare(project, recorder, write_source, tmp_path, layout, delay=0, failing={"bad"})

        result = project.build(options=BuildOptions(jobs=4, ignore_fatal=True))

        assert result.status == BuildStatus.BEST_EFFORT
        assert result.outcome("after_bad").state == TargetState.BLOCKED
        assert result.outcome("far").state == TargetState.BLOCKED
        assert result.outcome("far").reason == "dependency bad failed"
        assert result.outcome("good").state == TargetState.BUILT
        assert result.outcome("after_good").state == TargetState.BUILT

    def test_resolution_error_propagates(self, project, recorder, tmp_path):
        out = tmp_path / "out" / "x"
        out.parent.mkdir()
        out.write_text("stale\n")
        project.callback_target("x", recorder.action(), sources=[str(tmp_path / "gone.c")], output_path=out)

        with pytest.raises(ResolutionError):
            project.build(options=BuildOptions(jobs=4, ignore_fatal=True))


class TestLiveDisplay:
    def test_terminal_build_uses_live_display(self, project, recorder, write_source, tmp_path):
        buffer = io.StringIO()
        output.set_console(Console(file=buffer, force_terminal=True, width=120))
        _declare(project, recorder, write_source, tmp_path, DIAMOND, delay=0)

        result = project.build(options=BuildOptions(jobs=2))

        assert result.success
        rendered = buffer.getvalue()
        assert "Building demo..." in rendered
        assert "4 targets" in rendered
