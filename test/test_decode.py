from __future__ import annotations

from pipelinelens.runstore.decode import progress_from_dict, projects_from_payload, run_from_dict, runs_from_list
from pipelinelens.util.timeutil import parse_timestamp


def test_run_from_dict_tolerates_loose_payloads() -> None:
    run = run_from_dict(
        {
            "id": 7,
            "status": "running",
            "created_at": "2024-01-01T00:00:00Z",
            "pipeline_module": "",
            "step_executions": [
                {"id": "s1", "step_number": "2", "step_name": "seed_generation", "status": "completed", "progress_percent": 99.6},
                "not-a-step",
                {"id": "s2", "step_number": 3, "step_name": "keyword_expansion", "status": "running", "items_total": None},
            ],
        }
    )
    assert run.id == "7"
    assert run.pipeline_module is None
    assert [step.id for step in run.step_executions] == ["s1", "s2"]
    assert run.step_executions[0].step_number == 2
    assert run.step_executions[0].progress_percent == 99
    assert run.step_executions[1].items_total is None


def test_runs_from_list_ignores_non_lists() -> None:
    assert runs_from_list({"items": []}) == []
    assert runs_from_list(None) == []


def test_progress_steps_absent_stay_none() -> None:
    progress = progress_from_dict({"run_id": "r1", "status": "running", "overall_progress": "73"})
    assert progress.steps is None
    assert progress.overall_progress == 73.0

    with_steps = progress_from_dict({"run_id": "r1", "steps": []})
    assert with_steps.steps == []
    assert with_steps.status is None


def test_projects_from_payload() -> None:
    paged = projects_from_payload({"items": [{"id": "p1", "name": "One", "domain": "example.com"}]})
    assert [project.id for project in paged] == ["p1"]
    assert projects_from_payload([{"id": "p2", "name": "Two"}])[0].domain is None
    assert projects_from_payload("nope") == []


def test_parse_timestamp() -> None:
    assert parse_timestamp(None) == 0.0
    assert parse_timestamp("garbage") == 0.0
    assert parse_timestamp("1970-01-01T00:00:01Z") == 1000.0
    assert parse_timestamp("1970-01-01T00:00:01") == 1000.0
    assert parse_timestamp("1970-01-01T01:00:01+01:00") == 1000.0
