from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional

from pipelinelens.runstore.models import PipelineRun
from .context import SelectionContext
from .module import ModuleTarget, filter_runs_by_module, is_run_in_module, other_module, pick_latest_run_for_module
from .phase import ClassifiedRun, PhaseTarget, is_phase_match, pick_latest_run_for_phase

RouteAction = Literal["show", "redirect", "not_found", "conflict"]


@dataclass
class RouteDecision:
    """What a view should do with a requested run.

    `target` names the phase or module view the run id belongs to; for a
    redirect it is where the caller should navigate.
    """

    action: RouteAction
    run_id: Optional[str]
    target: str

    @property
    def should_redirect(self) -> bool:
        return self.action == "redirect"


def resolve_phase_route(
    runs: Iterable[ClassifiedRun],
    requested_run_id: str,
    target: PhaseTarget,
    context: Optional[SelectionContext] = None,
) -> RouteDecision:
    candidates: List[ClassifiedRun] = list(runs)
    requested = next((entry for entry in candidates if entry.run.id == requested_run_id), None)
    if requested is None:
        preferred = pick_latest_run_for_phase(candidates, target, context)
        if preferred:
            return RouteDecision("redirect", preferred.run.id, target)
        return RouteDecision("not_found", None, target)
    if not is_phase_match(requested.phase, target):
        preferred = pick_latest_run_for_phase(candidates, target, context)
        if preferred and preferred.run.id != requested.run.id:
            return RouteDecision("redirect", preferred.run.id, target)
    return RouteDecision("show", requested.run.id, target)


def resolve_module_route(
    runs: Iterable[PipelineRun],
    requested_run_id: str,
    target: ModuleTarget,
    context: Optional[SelectionContext] = None,
) -> RouteDecision:
    candidates: List[PipelineRun] = list(runs)
    requested = next((run for run in candidates if run.id == requested_run_id), None)
    if requested and not is_run_in_module(requested, target):
        other = other_module(target)
        if is_run_in_module(requested, other):
            return RouteDecision("redirect", requested.id, other)
    in_target = filter_runs_by_module(candidates, target, context)
    if requested is None or all(run.id != requested.id for run in in_target):
        preferred = pick_latest_run_for_module(candidates, target, context)
        if preferred:
            return RouteDecision("redirect", preferred.id, target)
        return RouteDecision("not_found", None, target)
    return RouteDecision("show", requested.id, target)


def verify_module_run(run: PipelineRun, target: ModuleTarget) -> RouteDecision:
    """Re-check a fully loaded run, whose tag may differ from the listing summary."""
    if is_run_in_module(run, target):
        return RouteDecision("show", run.id, target)
    other = other_module(target)
    if is_run_in_module(run, other):
        return RouteDecision("redirect", run.id, other)
    return RouteDecision("conflict", run.id, target)
