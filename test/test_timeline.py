from __future__ import annotations

from pipelinelens.engine.timeline import discovery_step_states, format_step_items, format_step_name, step_timeline
from pipelinelens.runstore.models import StepExecution


def _step(step_id: str, number: int, name: str, status: str, minute: int) -> StepExecution:
    return StepExecution(
        id=step_id,
        step_number=number,
        step_name=name,
        status=status,
        started_at=f"2024-01-01T00:{minute:02d}:00Z",
    )


def test_format_step_name() -> None:
    assert format_step_name("seed_generation") == "Seed Generation"
    assert format_step_name("SERP-analysis") == "Serp Analysis"
    assert format_step_name(None) == "Unnamed Step"
    assert format_step_name("__") == "Unnamed Step"


def test_format_step_items() -> None:
    step = StepExecution(id="s1", step_number=2, step_name="seed_generation", status="running", items_processed=4, items_total=10)
    assert format_step_items(step) == "4/10 items processed"
    step.items_total = None
    assert format_step_items(step) == "4 items processed"


def test_step_timeline_collects_attempts_per_step() -> None:
    executions = [
        _step("a", 2, "seed_generation", "completed", 1),
        _step("b", 3, "keyword_expansion", "failed", 2),
        _step("c", 3, "keyword_expansion", "error", 3),
        _step("d", 3, "keyword_expansion", "completed", 4),
    ]
    rows = step_timeline(executions)
    assert [row.step_number for row in rows] == [2, 3]
    assert rows[1].latest.id == "d"
    assert [attempt.id for attempt in rows[1].attempts] == ["b", "c", "d"]
    assert rows[1].historical_failure_count == 2
    assert rows[1].step_name == "Keyword Expansion"
    assert rows[0].historical_failure_count == 0


def test_discovery_step_states_while_running() -> None:
    executions = [
        _step("a", 2, "seed_generation", "completed", 1),
        _step("b", 3, "keyword_expansion", "running", 2),
    ]
    states = discovery_step_states(executions, "Expansion", is_active=True)
    by_label = {state.label: state.state for state in states}
    assert by_label["Seeds"] == "completed"
    assert by_label["Expansion"] == "running"
    assert by_label["SERP"] == "idle"
    assert [state.step_number for state in states] == [2, 3, 4, 5, 6, 7, 8]


def test_discovery_step_states_use_latest_attempt() -> None:
    executions = [
        _step("a", 2, "seed_generation", "completed", 1),
        _step("b", 2, "seed_generation", "failed", 5),
    ]
    states = discovery_step_states(executions, None, is_active=False)
    assert states[0].state == "idle"
