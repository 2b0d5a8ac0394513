from __future__ import annotations

from typing import Optional

from pipelinelens.engine.iterations import current_iteration, group_into_iterations
from pipelinelens.runstore.models import StepExecution


def _step(step_id: str, number: int, status: str, minute: int, name: str = "") -> StepExecution:
    ts = f"2024-01-01T00:{minute:02d}:00Z"
    completed: Optional[str] = None if status == "running" else ts
    return StepExecution(
        id=step_id,
        step_number=number,
        step_name=name or f"step_{number}",
        status=status,
        started_at=ts,
        completed_at=completed,
    )


def test_empty_log_has_no_iterations() -> None:
    assert group_into_iterations([]) == []
    assert current_iteration([], "running") is None


def test_two_iteration_scenario() -> None:
    executions = [
        _step("e1", 1, "completed", 1),
        _step("e2", 2, "completed", 2),
        _step("e3", 3, "completed", 3),
        _step("e4", 1, "completed", 4),
        _step("e5", 2, "running", 5),
    ]
    groups = group_into_iterations(executions)
    assert [group.step_numbers for group in groups] == [[1, 2, 3], [1, 2]]
    assert [group.iteration_index for group in groups] == [0, 1]
    assert not groups[0].is_active
    assert groups[1].is_active
    assert not any(group.is_failed for group in groups)
    assert current_iteration(groups, "running") is groups[1]
    assert current_iteration(groups, "completed") is None


def test_groups_follow_chronological_order_not_input_order() -> None:
    executions = [
        _step("e3", 1, "completed", 9),
        _step("e1", 1, "completed", 1),
        _step("e2", 2, "completed", 2),
    ]
    groups = group_into_iterations(executions)
    assert [[execution.id for execution in group.executions] for group in groups] == [["e1", "e2"], ["e3"]]


def test_step_numbers_strictly_increase_within_an_iteration() -> None:
    executions = [
        _step("a", 2, "completed", 1),
        _step("b", 3, "completed", 2),
        _step("c", 3, "completed", 3),
        _step("d", 4, "completed", 4),
        _step("e", 2, "completed", 5),
        _step("f", 5, "completed", 6),
    ]
    groups = group_into_iterations(executions)
    for group in groups:
        numbers = group.step_numbers
        assert all(later > earlier for earlier, later in zip(numbers, numbers[1:]))
    assert sum(len(group.executions) for group in groups) == len(executions)


def test_failed_iteration_is_flagged() -> None:
    executions = [
        _step("e1", 1, "completed", 1),
        _step("e2", 2, "failed", 2),
        _step("e3", 1, "completed", 3),
        _step("e4", 2, "completed", 4),
    ]
    groups = group_into_iterations(executions)
    assert [group.is_failed for group in groups] == [True, False]
