from __future__ import annotations

from pipelinelens.engine.progress import overall_progress, resolve_effective_progress, round_half_up
from pipelinelens.runstore.models import PipelineRun, ProgressSnapshot, StepExecution


def _step(step_id: str, percent: int, status: str = "completed") -> StepExecution:
    return StepExecution(id=step_id, step_number=1, step_name="seed_generation", status=status, progress_percent=percent)


def test_overall_progress_of_empty_list_is_zero() -> None:
    assert overall_progress([]) == 0


def test_overall_progress_is_the_mean() -> None:
    assert overall_progress([_step("a", 40), _step("b", 60)]) == 50


def test_overall_progress_rounds_half_up_and_clamps() -> None:
    assert overall_progress([_step("a", 10), _step("b", 15)]) == 13
    assert overall_progress([_step("a", 150), _step("b", 100)]) == 100
    assert overall_progress([_step("a", -20), _step("b", 0)]) == 0
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_stored_values_without_live_snapshot() -> None:
    run = PipelineRun(id="r1", status="running", created_at="", step_executions=[_step("a", 40), _step("b", 60, "running")])
    progress = resolve_effective_progress(run)
    assert progress.status == "running"
    assert progress.overall_progress == 50
    assert progress.is_active
    assert not progress.is_live
    assert progress.current_step_name is None


def test_live_overall_progress_wins() -> None:
    run = PipelineRun(id="r1", status="running", created_at="", step_executions=[_step("a", 40), _step("b", 60)])
    live = ProgressSnapshot(run_id="r1", status="running", overall_progress=73, current_step_name="serp_analysis")
    progress = resolve_effective_progress(run, live)
    assert progress.overall_progress == 73
    assert progress.is_live
    assert progress.current_step_name == "serp_analysis"
    assert [step.id for step in progress.steps] == ["a", "b"]


def test_live_steps_replace_stored_steps() -> None:
    run = PipelineRun(id="r1", status="running", created_at="", step_executions=[_step("a", 10)])
    live = ProgressSnapshot(run_id="r1", status="completed", steps=[_step("x", 100), _step("y", 80)])
    progress = resolve_effective_progress(run, live)
    assert [step.id for step in progress.steps] == ["x", "y"]
    assert progress.overall_progress == 90
    assert progress.status == "completed"
    assert not progress.is_active


def test_live_without_status_keeps_stored_status() -> None:
    run = PipelineRun(id="r1", status="queued", created_at="")
    progress = resolve_effective_progress(run, ProgressSnapshot(run_id="r1"))
    assert progress.status == "queued"
    assert progress.overall_progress == 0
