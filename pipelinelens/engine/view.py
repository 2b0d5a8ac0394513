from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from pipelinelens.runstore.models import PipelineRun, ProgressSnapshot, StepExecution
from pipelinelens.runstore.status import StepSummary, summarize_steps
from .highlight import HighlightedIteration, resolve_highlight_iteration
from .iterations import IterationGroup, group_into_iterations
from .phase import Phase, classify
from .progress import resolve_effective_progress
from .timeline import StepTimelineRow, step_timeline


@dataclass
class RunView:
    run_id: str
    phase: Phase
    status: str
    is_active: bool
    is_live: bool
    overall_progress: int
    current_step_name: Optional[str]
    iterations: List[IterationGroup] = field(default_factory=list)
    highlight: Optional[StepExecution] = None
    highlight_iteration: Optional[int] = None
    timeline: List[StepTimelineRow] = field(default_factory=list)
    summary: StepSummary = field(default_factory=StepSummary)


def build_run_view(
    run: PipelineRun,
    live: Optional[ProgressSnapshot] = None,
    explicit_focus: Optional[int] = None,
) -> RunView:
    """Derive everything a run page displays from the stored run and an optional live snapshot.

    The phase always comes from the stored executions; status, steps and
    progress come from the live snapshot when one is supplied.
    """
    progress = resolve_effective_progress(run, live)
    groups = group_into_iterations(progress.steps)
    highlighted: Optional[HighlightedIteration] = resolve_highlight_iteration(groups, explicit_focus)
    timeline = step_timeline(progress.steps)
    current_step_name = progress.current_step_name
    if not current_step_name and highlighted is not None:
        current_step_name = highlighted.execution.step_name
    return RunView(
        run_id=run.id,
        phase=classify(run),
        status=progress.status,
        is_active=progress.is_active,
        is_live=progress.is_live,
        overall_progress=progress.overall_progress,
        current_step_name=current_step_name,
        iterations=groups,
        highlight=highlighted.execution if highlighted else None,
        highlight_iteration=highlighted.iteration_index if highlighted else None,
        timeline=timeline,
        summary=summarize_steps(row.latest for row in timeline),
    )


def run_view_to_dict(view: RunView) -> Dict[str, Any]:
    return asdict(view)
