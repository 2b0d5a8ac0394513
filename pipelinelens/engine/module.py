from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional

from pipelinelens.runstore.models import PipelineRun
from .context import SelectionContext, in_context
from .ordering import sort_runs_newest
from .phase import CREATION_SIGNATURES, DISCOVERY_SIGNATURES, matches_signature

PipelineModule = Literal["discovery", "content", "unknown"]
ModuleTarget = Literal["discovery", "content"]

_MODULE_ALIASES = {"discovery": "discovery", "content": "content", "creation": "content"}


@dataclass
class ContentRunGroups:
    by_parent_run_id: Dict[str, List[PipelineRun]] = field(default_factory=dict)
    standalone: List[PipelineRun] = field(default_factory=list)


def normalize_pipeline_module(value: Optional[str]) -> PipelineModule:
    return _MODULE_ALIASES.get(str(value or "").strip().lower(), "unknown")  # type: ignore[return-value]


def format_pipeline_module_label(value: Optional[str]) -> str:
    normalized = normalize_pipeline_module(value)
    if normalized == "discovery":
        return "Discovery"
    if normalized == "content":
        return "Content"
    return "Unknown"


def other_module(target: ModuleTarget) -> ModuleTarget:
    return "content" if target == "discovery" else "discovery"


def is_run_in_module(run: PipelineRun, target: ModuleTarget) -> bool:
    """Yes/no membership of one run in one module.

    The backend's `pipeline_module` tag decides when it names a known module.
    Untagged runs fall back to the step-name signatures, tested for the target
    module alone, so a run can belong to both modules or to neither.
    """
    declared = normalize_pipeline_module(run.pipeline_module)
    if declared != "unknown":
        return declared == target
    signatures = DISCOVERY_SIGNATURES if target == "discovery" else CREATION_SIGNATURES
    return any(matches_signature(step.step_name, signatures) for step in run.step_executions)


def filter_runs_by_module(
    runs: Iterable[PipelineRun],
    target: ModuleTarget,
    context: Optional[SelectionContext] = None,
) -> List[PipelineRun]:
    return [run for run in sort_runs_newest(runs) if in_context(run, context) and is_run_in_module(run, target)]


def pick_latest_run_for_module(
    runs: Iterable[PipelineRun],
    target: ModuleTarget,
    context: Optional[SelectionContext] = None,
) -> Optional[PipelineRun]:
    matching = filter_runs_by_module(runs, target, context)
    return matching[0] if matching else None


def group_content_runs_by_parent(runs: Iterable[PipelineRun]) -> ContentRunGroups:
    groups = ContentRunGroups()
    for run in filter_runs_by_module(runs, "content"):
        if not run.parent_run_id:
            groups.standalone.append(run)
            continue
        groups.by_parent_run_id.setdefault(run.parent_run_id, []).append(run)
    return groups
