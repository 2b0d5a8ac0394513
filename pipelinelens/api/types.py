from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict


class RouteDecisionBody(TypedDict):
    action: str
    run_id: Optional[str]
    target: str


class RedirectResponse(TypedDict):
    decision: RouteDecisionBody
    location: str


class RunListItem(TypedDict):
    run: Dict[str, Any]
    phase: str
    phase_label: str
    pipeline_module: str
    has_discovery_snapshots: bool


class RunListResponse(TypedDict):
    project_id: str
    runs: List[RunListItem]


class RunPageResponse(TypedDict, total=False):
    decision: RouteDecisionBody
    view: Dict[str, Any]
    snapshots: List[Dict[str, Any]]
    snapshot_stats: Optional[Dict[str, Any]]
    snapshot_iterations: List[Dict[str, Any]]
    discovery_steps: List[Dict[str, Any]]
