from __future__ import annotations

from typing import Any, List, Optional

from .models import DiscoverySnapshot, PipelineRun, ProgressSnapshot, Project, StepExecution


def _str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _opt_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _opt_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _opt_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def step_execution_from_dict(data: dict) -> StepExecution:
    return StepExecution(
        id=_str(data.get("id")),
        step_number=_int(data.get("step_number")),
        step_name=_str(data.get("step_name")),
        status=_str(data.get("status")),
        progress_percent=_int(data.get("progress_percent")),
        items_processed=_int(data.get("items_processed")),
        items_total=_opt_int(data.get("items_total")),
        started_at=_opt_str(data.get("started_at")),
        completed_at=_opt_str(data.get("completed_at")),
        error_message=_opt_str(data.get("error_message")),
        progress_message=_opt_str(data.get("progress_message")),
    )


def step_executions_from_list(items: Any) -> List[StepExecution]:
    if not isinstance(items, list):
        return []
    return [step_execution_from_dict(item) for item in items if isinstance(item, dict)]


def run_from_dict(data: dict) -> PipelineRun:
    return PipelineRun(
        id=_str(data.get("id")),
        status=_str(data.get("status")),
        created_at=_str(data.get("created_at")),
        started_at=_opt_str(data.get("started_at")),
        completed_at=_opt_str(data.get("completed_at")),
        project_id=_opt_str(data.get("project_id")),
        pipeline_module=_opt_str(data.get("pipeline_module")),
        parent_run_id=_opt_str(data.get("parent_run_id")),
        error_message=_opt_str(data.get("error_message")),
        step_executions=step_executions_from_list(data.get("step_executions")),
    )


def runs_from_list(items: Any) -> List[PipelineRun]:
    if not isinstance(items, list):
        return []
    return [run_from_dict(item) for item in items if isinstance(item, dict)]


def progress_from_dict(data: dict) -> ProgressSnapshot:
    steps = data.get("steps")
    return ProgressSnapshot(
        run_id=_opt_str(data.get("run_id")),
        status=_opt_str(data.get("status")),
        steps=step_executions_from_list(steps) if steps is not None else None,
        current_step_name=_opt_str(data.get("current_step_name")),
        overall_progress=_opt_float(data.get("overall_progress")),
    )


def discovery_snapshot_from_dict(data: dict) -> DiscoverySnapshot:
    return DiscoverySnapshot(
        id=_str(data.get("id")),
        run_id=_str(data.get("run_id")),
        iteration_index=_int(data.get("iteration_index")),
        topic_name=_str(data.get("topic_name")),
        decision=_opt_str(data.get("decision")),
        reason=_opt_str(data.get("reason")),
    )


def discovery_snapshots_from_list(items: Any) -> List[DiscoverySnapshot]:
    if not isinstance(items, list):
        return []
    return [discovery_snapshot_from_dict(item) for item in items if isinstance(item, dict)]


def project_from_dict(data: dict) -> Project:
    return Project(
        id=_str(data.get("id")),
        name=_str(data.get("name")),
        domain=_opt_str(data.get("domain")),
    )


def projects_from_payload(payload: Any) -> List[Project]:
    # The project listing is paginated ({"items": [...]}); a bare list is accepted too.
    items = payload.get("items") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        return []
    return [project_from_dict(item) for item in items if isinstance(item, dict)]

