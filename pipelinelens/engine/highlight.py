from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from pipelinelens.runstore.models import StepExecution
from pipelinelens.runstore.status import is_active_status, is_failed_status
from .iterations import IterationGroup
from .ordering import order_executions


@dataclass
class HighlightedIteration:
    iteration_index: int
    execution: StepExecution


def resolve_highlight(
    executions: Iterable[StepExecution],
    explicit_focus: Optional[int] = None,
) -> Optional[StepExecution]:
    """Pick the execution a view focuses on.

    Precedence, first match wins: the latest attempt of an explicitly focused
    step number, the first active execution, the last failed execution, the
    most recent execution.
    """
    return _resolve_ordered(order_executions(executions), explicit_focus)


def _resolve_ordered(ordered: List[StepExecution], explicit_focus: Optional[int]) -> Optional[StepExecution]:
    if not ordered:
        return None
    if explicit_focus is not None:
        focused = [execution for execution in ordered if execution.step_number == explicit_focus]
        if focused:
            return focused[-1]
    for execution in ordered:
        if is_active_status(execution.status):
            return execution
    for execution in reversed(ordered):
        if is_failed_status(execution.status):
            return execution
    return ordered[-1]


def resolve_highlight_iteration(
    groups: List[IterationGroup],
    explicit_focus: Optional[int] = None,
) -> Optional[HighlightedIteration]:
    concatenated = [execution for group in groups for execution in group.executions]
    resolved = _resolve_ordered(concatenated, explicit_focus)
    if resolved is None:
        return None
    for group in groups:
        if any(execution is resolved for execution in group.executions):
            return HighlightedIteration(iteration_index=group.iteration_index, execution=resolved)
    return None
