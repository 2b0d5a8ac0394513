from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional, Union

from pipelinelens.runstore.models import PipelineRun, StepExecution
from .context import SelectionContext, in_context
from .ordering import sort_key_newest

Phase = Literal["discovery", "creation", "mixed", "unknown"]
PhaseTarget = Literal["discovery", "creation"]

PHASES = ("discovery", "creation", "mixed", "unknown")

DISCOVERY_SIGNATURES = frozenset(
    {
        "seed",
        "expansion",
        "expand",
        "metric",
        "intent",
        "cluster",
        "prioritization",
        "prioritize",
        "serp",
        "keyword",
        "topic",
        "discover",
    }
)
CREATION_SIGNATURES = frozenset(
    {
        "outline",
        "brief",
        "writerinstruction",
        "writer",
        "article",
        "content",
    }
)

_SEPARATORS = re.compile(r"[\s_\-./:]+")


@dataclass
class ClassifiedRun:
    run: PipelineRun
    phase: Phase
    has_discovery_snapshots: bool = False


def normalize_step_name(name: Optional[str]) -> str:
    return _SEPARATORS.sub("", str(name or "").casefold())


def matches_signature(name: Optional[str], signatures: Iterable[str]) -> bool:
    normalized = normalize_step_name(name)
    if not normalized:
        return False
    return any(token in normalized for token in signatures)


def classify(source: Union[PipelineRun, Iterable[StepExecution], None]) -> Phase:
    if source is None:
        return "unknown"
    steps = source.step_executions if isinstance(source, PipelineRun) else source
    has_discovery = False
    has_creation = False
    for name in {step.step_name for step in steps or []}:
        if matches_signature(name, DISCOVERY_SIGNATURES):
            has_discovery = True
        if matches_signature(name, CREATION_SIGNATURES):
            has_creation = True
    if has_discovery and has_creation:
        return "mixed"
    if has_discovery:
        return "discovery"
    if has_creation:
        return "creation"
    return "unknown"


def merge_phase_with_discovery_signals(phase: Phase, has_discovery_snapshots: bool) -> Phase:
    if not has_discovery_snapshots:
        return phase
    if phase == "creation":
        return "mixed"
    if phase == "unknown":
        return "discovery"
    return phase


def is_phase_match(phase: Phase, target: PhaseTarget) -> bool:
    return phase == target or phase == "mixed"


def phase_label(phase: Phase) -> str:
    if phase == "mixed":
        return "Mixed"
    if phase == "discovery":
        return "Discovery"
    if phase == "creation":
        return "Creation"
    return "Unknown"


def sort_classified_newest(runs: Iterable[ClassifiedRun]) -> List[ClassifiedRun]:
    return sorted(runs, key=lambda entry: sort_key_newest(entry.run))


def classify_runs(
    runs: Iterable[PipelineRun],
    snapshot_presence: Optional[Dict[str, bool]] = None,
) -> List[ClassifiedRun]:
    presence = snapshot_presence or {}
    classified = []
    for run in runs:
        has_snapshots = bool(presence.get(run.id, False))
        phase = merge_phase_with_discovery_signals(classify(run), has_snapshots)
        classified.append(ClassifiedRun(run=run, phase=phase, has_discovery_snapshots=has_snapshots))
    return sort_classified_newest(classified)


def pick_latest_run_for_phase(
    runs: Iterable[ClassifiedRun],
    target: PhaseTarget,
    context: Optional[SelectionContext] = None,
) -> Optional[ClassifiedRun]:
    for entry in sort_classified_newest(runs):
        if in_context(entry.run, context) and is_phase_match(entry.phase, target):
            return entry
    return None
