from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class StepExecution:
    id: str
    step_number: int
    step_name: str
    status: str
    progress_percent: int = 0
    items_processed: int = 0
    items_total: Optional[int] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    error_message: Optional[str] = None
    progress_message: Optional[str] = None


@dataclass
class PipelineRun:
    id: str
    status: str
    created_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    project_id: Optional[str] = None
    pipeline_module: Optional[str] = None
    parent_run_id: Optional[str] = None
    error_message: Optional[str] = None
    step_executions: List[StepExecution] = field(default_factory=list)


@dataclass
class ProgressSnapshot:
    run_id: Optional[str] = None
    status: Optional[str] = None
    steps: Optional[List[StepExecution]] = None
    current_step_name: Optional[str] = None
    overall_progress: Optional[float] = None


@dataclass
class DiscoverySnapshot:
    id: str
    run_id: str
    iteration_index: int
    topic_name: str
    decision: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class Project:
    id: str
    name: str
    domain: Optional[str] = None
