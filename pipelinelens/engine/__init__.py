from .context import ProjectSelection, SelectionContext, resolve_active_project
from .highlight import HighlightedIteration, resolve_highlight, resolve_highlight_iteration
from .iterations import IterationGroup, current_iteration, group_into_iterations
from .module import (
    ContentRunGroups,
    filter_runs_by_module,
    format_pipeline_module_label,
    group_content_runs_by_parent,
    is_run_in_module,
    normalize_pipeline_module,
    pick_latest_run_for_module,
)
from .ordering import order_executions, sort_runs_newest
from .phase import (
    ClassifiedRun,
    Phase,
    classify,
    classify_runs,
    is_phase_match,
    merge_phase_with_discovery_signals,
    phase_label,
    pick_latest_run_for_phase,
)
from .polling import PollingController, Scheduler, ThreadScheduler, VirtualScheduler, executor_fetcher
from .progress import EffectiveProgress, overall_progress, resolve_effective_progress
from .selection import RouteDecision, resolve_module_route, resolve_phase_route, verify_module_run
from .snapshots import SnapshotStats, group_snapshots_by_iteration, snapshot_stats
from .timeline import StepTimelineRow, discovery_step_states, step_timeline
from .view import RunView, build_run_view, run_view_to_dict

__all__ = [
    "ProjectSelection",
    "SelectionContext",
    "resolve_active_project",
    "HighlightedIteration",
    "resolve_highlight",
    "resolve_highlight_iteration",
    "IterationGroup",
    "current_iteration",
    "group_into_iterations",
    "ContentRunGroups",
    "filter_runs_by_module",
    "format_pipeline_module_label",
    "group_content_runs_by_parent",
    "is_run_in_module",
    "normalize_pipeline_module",
    "pick_latest_run_for_module",
    "order_executions",
    "sort_runs_newest",
    "ClassifiedRun",
    "Phase",
    "classify",
    "classify_runs",
    "is_phase_match",
    "merge_phase_with_discovery_signals",
    "phase_label",
    "pick_latest_run_for_phase",
    "PollingController",
    "Scheduler",
    "ThreadScheduler",
    "VirtualScheduler",
    "executor_fetcher",
    "EffectiveProgress",
    "overall_progress",
    "resolve_effective_progress",
    "RouteDecision",
    "resolve_module_route",
    "resolve_phase_route",
    "verify_module_run",
    "SnapshotStats",
    "group_snapshots_by_iteration",
    "snapshot_stats",
    "StepTimelineRow",
    "discovery_step_states",
    "step_timeline",
    "RunView",
    "build_run_view",
    "run_view_to_dict",
]
