from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from pipelinelens.runstore.models import PipelineRun, ProgressSnapshot, StepExecution
from pipelinelens.runstore.status import is_active_status


@dataclass
class EffectiveProgress:
    status: str
    steps: List[StepExecution] = field(default_factory=list)
    overall_progress: int = 0
    current_step_name: Optional[str] = None
    is_live: bool = False

    @property
    def is_active(self) -> bool:
        return is_active_status(self.status)


def clamp_percent(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def overall_progress(steps: Iterable[StepExecution]) -> int:
    values = [max(0, min(100, step.progress_percent)) for step in steps]
    if not values:
        return 0
    return clamp_percent(sum(values) / len(values))


def effective_status(run: PipelineRun, live: Optional[ProgressSnapshot]) -> str:
    if live is not None and live.status:
        return live.status
    return run.status


def resolve_effective_progress(run: PipelineRun, live: Optional[ProgressSnapshot] = None) -> EffectiveProgress:
    """Combine a run's stored state with a live progress payload.

    Each live field that is present replaces the stored one wholesale: the
    live step list is never merged into the stored executions, and a live
    overall_progress is taken as is rather than recomputed.
    """
    if live is None:
        return EffectiveProgress(
            status=run.status,
            steps=list(run.step_executions),
            overall_progress=overall_progress(run.step_executions),
        )
    steps = list(live.steps) if live.steps is not None else list(run.step_executions)
    if live.overall_progress is not None:
        overall = clamp_percent(live.overall_progress)
    else:
        overall = overall_progress(steps)
    return EffectiveProgress(
        status=effective_status(run, live),
        steps=steps,
        overall_progress=overall,
        current_step_name=live.current_step_name,
        is_live=True,
    )
