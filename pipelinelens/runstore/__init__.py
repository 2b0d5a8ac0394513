from .client import BackendClient, BackendError, JsonResult
from .decode import (
    discovery_snapshots_from_list,
    progress_from_dict,
    projects_from_payload,
    run_from_dict,
    runs_from_list,
    step_execution_from_dict,
)
from .models import DiscoverySnapshot, PipelineRun, ProgressSnapshot, Project, StepExecution
from .status import (
    StepSummary,
    format_status_label,
    is_active_status,
    is_failed_status,
    is_paused_status,
    is_success_status,
    status_bucket,
    summarize_steps,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "JsonResult",
    "discovery_snapshots_from_list",
    "progress_from_dict",
    "projects_from_payload",
    "run_from_dict",
    "runs_from_list",
    "step_execution_from_dict",
    "DiscoverySnapshot",
    "PipelineRun",
    "ProgressSnapshot",
    "Project",
    "StepExecution",
    "StepSummary",
    "format_status_label",
    "is_active_status",
    "is_failed_status",
    "is_paused_status",
    "is_success_status",
    "status_bucket",
    "summarize_steps",
]
