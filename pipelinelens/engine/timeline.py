from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from pipelinelens.runstore.models import StepExecution
from pipelinelens.runstore.status import is_failed_status, is_success_status
from .ordering import order_executions

StepState = Literal["completed", "running", "idle"]

DISCOVERY_STEPS: Tuple[Tuple[int, str], ...] = (
    (2, "Seeds"),
    (3, "Expansion"),
    (4, "Metrics"),
    (5, "Intent"),
    (6, "Clustering"),
    (7, "Prioritization"),
    (8, "SERP"),
)


@dataclass
class StepTimelineRow:
    step_number: int
    step_name: str
    latest: StepExecution
    attempts: List[StepExecution] = field(default_factory=list)
    historical_failure_count: int = 0


@dataclass
class DiscoveryStepState:
    step_number: int
    label: str
    state: StepState


def format_step_name(value: Optional[str]) -> str:
    if not value:
        return "Unnamed Step"
    tokens = re.sub(r"[_-]+", " ", value).split()
    if not tokens:
        return "Unnamed Step"
    return " ".join(token[:1].upper() + token[1:].lower() for token in tokens)


def format_step_items(step: StepExecution) -> str:
    if step.items_total is None:
        return f"{step.items_processed} items processed"
    return f"{step.items_processed}/{step.items_total} items processed"


def step_timeline(executions: Iterable[StepExecution]) -> List[StepTimelineRow]:
    """One row per step number: every attempt in time order, the latest attempt, and earlier failures."""
    attempts_by_step: Dict[int, List[StepExecution]] = {}
    for execution in order_executions(executions):
        attempts_by_step.setdefault(execution.step_number, []).append(execution)

    rows = []
    for step_number in sorted(attempts_by_step):
        attempts = attempts_by_step[step_number]
        latest = attempts[-1]
        rows.append(
            StepTimelineRow(
                step_number=step_number,
                step_name=format_step_name(latest.step_name),
                latest=latest,
                attempts=attempts,
                historical_failure_count=sum(1 for attempt in attempts[:-1] if is_failed_status(attempt.status)),
            )
        )
    return rows


def discovery_step_states(
    executions: Iterable[StepExecution],
    current_step_name: Optional[str],
    is_active: bool,
) -> List[DiscoveryStepState]:
    steps = order_executions(executions)
    current = (current_step_name or "").strip().lower()
    current_index = next(
        (index for index, (_, label) in enumerate(DISCOVERY_STEPS) if label.lower() == current),
        -1,
    )

    states = []
    for index, (number, label) in enumerate(DISCOVERY_STEPS):
        states.append(DiscoveryStepState(number, label, _step_state(index, number, label, steps, current, current_index, is_active)))
    return states


def _step_state(
    index: int,
    number: int,
    label: str,
    steps: List[StepExecution],
    current: str,
    current_index: int,
    is_active: bool,
) -> StepState:
    if is_active and current:
        if label.lower() == current:
            return "running"
        # Not reached yet in this iteration.
        if current_index != -1 and index > current_index:
            return "idle"
    execution = next((step for step in reversed(steps) if step.step_number == number), None)
    if execution and is_success_status(execution.status):
        return "completed"
    return "idle"
