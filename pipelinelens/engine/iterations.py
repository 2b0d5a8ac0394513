"""
Decompose one run's step-execution log into loop iterations.

The backend never says where an iteration starts. A looping run re-executes
earlier step numbers, so after ordering the attempts chronologically a new
iteration begins whenever a step number does not exceed one already placed in
the current iteration. This is a heuristic: out-of-order retries of a
non-looping run can be over-split.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from pipelinelens.runstore.models import StepExecution
from pipelinelens.runstore.status import is_active_status, is_failed_status
from .ordering import order_executions


@dataclass
class IterationGroup:
    iteration_index: int
    executions: List[StepExecution] = field(default_factory=list)
    is_active: bool = False
    is_failed: bool = False

    @property
    def step_numbers(self) -> List[int]:
        return [execution.step_number for execution in self.executions]


def group_into_iterations(executions: Iterable[StepExecution]) -> List[IterationGroup]:
    passes: List[List[StepExecution]] = []
    max_step_in_pass: Optional[int] = None
    for execution in order_executions(executions):
        if max_step_in_pass is None or execution.step_number <= max_step_in_pass:
            passes.append([])
            max_step_in_pass = execution.step_number
        passes[-1].append(execution)
        max_step_in_pass = max(max_step_in_pass, execution.step_number)

    return [
        IterationGroup(
            iteration_index=index,
            executions=members,
            is_active=any(is_active_status(member.status) for member in members),
            is_failed=_has_unrecovered_failure(members),
        )
        for index, members in enumerate(passes)
    ]


def _has_unrecovered_failure(members: List[StepExecution]) -> bool:
    # Newest attempt per step number decides; a later success supersedes a failure.
    latest: Dict[int, StepExecution] = {}
    for member in reversed(members):
        if member.step_number not in latest:
            latest[member.step_number] = member
    return any(is_failed_status(attempt.status) for attempt in latest.values())


def current_iteration(groups: List[IterationGroup], run_status: Optional[str]) -> Optional[IterationGroup]:
    if not groups or not is_active_status(run_status):
        return None
    return groups[-1]
