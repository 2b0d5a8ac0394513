"""
Page loaders: fetch what a run page needs from the backend and run it through the engine.

Each loader first decides whether the requested run may be shown under the
requested phase or module. Only a run that is shown gets loaded in full, and
its live progress is fetched only while its stored status is active.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pipelinelens.engine.context import SelectionContext
from pipelinelens.engine.module import ModuleTarget
from pipelinelens.engine.phase import ClassifiedRun, PhaseTarget, classify_runs
from pipelinelens.engine.progress import resolve_effective_progress
from pipelinelens.engine.selection import RouteDecision, resolve_module_route, resolve_phase_route, verify_module_run
from pipelinelens.engine.snapshots import SnapshotIteration, SnapshotStats, group_snapshots_by_iteration, snapshot_stats
from pipelinelens.engine.timeline import DiscoveryStepState, discovery_step_states
from pipelinelens.engine.view import RunView, build_run_view
from pipelinelens.runstore.client import BackendClient, JsonResult
from pipelinelens.runstore.models import DiscoverySnapshot, PipelineRun, ProgressSnapshot, StepExecution
from pipelinelens.runstore.status import is_active_status
from pipelinelens.util.logging import get_logger

logger = get_logger("dashboard.loader")


@dataclass
class PageResult:
    decision: Optional[RouteDecision] = None
    run: Optional[PipelineRun] = None
    progress: Optional[ProgressSnapshot] = None
    view: Optional[RunView] = None
    snapshots: List[DiscoverySnapshot] = field(default_factory=list)
    snapshot_stats: Optional[SnapshotStats] = None
    snapshot_iterations: List[SnapshotIteration] = field(default_factory=list)
    discovery_steps: List[DiscoveryStepState] = field(default_factory=list)
    unauthorized: bool = False
    error_status: Optional[int] = None


@dataclass
class RunListResult:
    runs: List[ClassifiedRun] = field(default_factory=list)
    unauthorized: bool = False
    error_status: Optional[int] = None


def _unauthorized() -> PageResult:
    return PageResult(unauthorized=True)


def load_classified_runs(client: BackendClient, project_id: str, limit: int = 12) -> RunListResult:
    runs_result = client.list_runs(project_id, limit)
    if runs_result.unauthorized:
        return RunListResult(unauthorized=True)
    if not runs_result.ok:
        return RunListResult(error_status=runs_result.status)
    runs: List[PipelineRun] = runs_result.data or []
    presence = client.snapshot_presence(project_id, runs)
    if presence.unauthorized:
        return RunListResult(unauthorized=True)
    return RunListResult(runs=classify_runs(runs, presence.data))


def load_phase_page(
    client: BackendClient,
    project_id: str,
    run_id: str,
    phase: PhaseTarget,
    limit: int = 12,
    focus: Optional[int] = None,
) -> PageResult:
    listing = load_classified_runs(client, project_id, limit)
    if listing.unauthorized:
        return _unauthorized()
    if listing.error_status is not None:
        return PageResult(error_status=listing.error_status)
    decision = resolve_phase_route(listing.runs, run_id, phase, SelectionContext(project_id))
    log = logger.bind(project_id=project_id, run_id=run_id, phase=phase)
    if decision.action != "show":
        log.info("Run not shown under phase", action=decision.action, target_run_id=decision.run_id)
        return PageResult(decision=decision)
    return _load_shown_run(client, project_id, run_id, decision, focus, with_snapshots=phase == "discovery")


def load_module_page(
    client: BackendClient,
    project_id: str,
    run_id: str,
    module: ModuleTarget,
    limit: int = 12,
    focus: Optional[int] = None,
) -> PageResult:
    runs_result = client.list_runs(project_id, limit)
    if runs_result.unauthorized:
        return _unauthorized()
    if not runs_result.ok:
        return PageResult(error_status=runs_result.status)
    runs: List[PipelineRun] = runs_result.data or []
    decision = resolve_module_route(runs, run_id, module, SelectionContext(project_id))
    log = logger.bind(project_id=project_id, run_id=run_id, module=module)
    if decision.action != "show":
        log.info("Run not shown under module", action=decision.action, target_run_id=decision.run_id)
        return PageResult(decision=decision)
    return _load_shown_run(client, project_id, run_id, decision, focus, with_snapshots=module == "discovery", module=module)


def _load_shown_run(
    client: BackendClient,
    project_id: str,
    run_id: str,
    decision: RouteDecision,
    focus: Optional[int],
    with_snapshots: bool,
    module: Optional[ModuleTarget] = None,
) -> PageResult:
    run_result = client.get_run(project_id, run_id)
    if run_result.unauthorized:
        return _unauthorized()
    if not run_result.ok or run_result.data is None:
        return PageResult(decision=decision, error_status=run_result.status or 502)
    run: PipelineRun = run_result.data

    if module is not None:
        verified = verify_module_run(run, module)
        if verified.action != "show":
            return PageResult(decision=verified, run=run)

    progress: Optional[ProgressSnapshot] = None
    if is_active_status(run.status):
        progress_result = client.get_progress(project_id, run_id)
        if progress_result.unauthorized:
            return _unauthorized()
        progress = _ok_data(progress_result)

    snapshots: List[DiscoverySnapshot] = []
    if with_snapshots:
        snapshot_result = client.list_discovery_snapshots(project_id, run_id)
        if snapshot_result.unauthorized:
            return _unauthorized()
        snapshots = _ok_data(snapshot_result) or []

    if focus is not None and not _has_step(resolve_effective_progress(run, progress).steps, focus):
        logger.info("Focused step not in run", project_id=project_id, run_id=run_id, focus=focus)
        return PageResult(decision=RouteDecision("not_found", run.id, decision.target), run=run, progress=progress)

    view = build_run_view(run, progress, focus)
    page = PageResult(decision=decision, run=run, progress=progress, view=view)
    if with_snapshots:
        executions = [execution for group in view.iterations for execution in group.executions]
        page.snapshots = snapshots
        page.snapshot_stats = snapshot_stats(snapshots)
        page.snapshot_iterations = group_snapshots_by_iteration(snapshots)
        page.discovery_steps = discovery_step_states(executions, view.current_step_name, view.is_active)
    return page


def _has_step(steps: List[StepExecution], step_number: int) -> bool:
    return any(step.step_number == step_number for step in steps)


def _ok_data(result: JsonResult):
    if result.ok and result.data is not None:
        return result.data
    return None
