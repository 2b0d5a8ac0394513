from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from pipelinelens.runstore.models import DiscoverySnapshot
from .progress import round_half_up

_ACCEPT_TOKENS = ("accept", "approved", "selected")
_REJECT_TOKENS = ("reject", "exclude", "deny")


@dataclass
class SnapshotIteration:
    iteration_index: int
    snapshots: List[DiscoverySnapshot] = field(default_factory=list)
    accepted_count: int = 0
    rejected_count: int = 0
    other_count: int = 0


@dataclass
class SnapshotStats:
    iteration_count: int = 0
    accepted_count: int = 0
    rejected_count: int = 0
    unknown_count: int = 0
    acceptance_rate: int = 0


def is_accepted_decision(decision: Optional[str]) -> bool:
    normalized = str(decision or "").lower()
    return any(token in normalized for token in _ACCEPT_TOKENS)


def is_rejected_decision(decision: Optional[str]) -> bool:
    normalized = str(decision or "").lower()
    return any(token in normalized for token in _REJECT_TOKENS)


def group_snapshots_by_iteration(snapshots: Iterable[DiscoverySnapshot]) -> List[SnapshotIteration]:
    by_iteration: Dict[int, List[DiscoverySnapshot]] = {}
    for snapshot in snapshots:
        by_iteration.setdefault(snapshot.iteration_index, []).append(snapshot)

    groups = []
    for index in sorted(by_iteration):
        members = sorted(by_iteration[index], key=lambda snapshot: snapshot.topic_name.casefold())
        accepted = sum(1 for member in members if is_accepted_decision(member.decision))
        rejected = sum(1 for member in members if is_rejected_decision(member.decision))
        groups.append(
            SnapshotIteration(
                iteration_index=index,
                snapshots=members,
                accepted_count=accepted,
                rejected_count=rejected,
                other_count=max(0, len(members) - accepted - rejected),
            )
        )
    return groups


def snapshot_stats(snapshots: Iterable[DiscoverySnapshot]) -> SnapshotStats:
    items = list(snapshots)
    if not items:
        return SnapshotStats()
    accepted = sum(1 for item in items if is_accepted_decision(item.decision))
    rejected = sum(1 for item in items if is_rejected_decision(item.decision))
    return SnapshotStats(
        iteration_count=len({item.iteration_index for item in items}),
        accepted_count=accepted,
        rejected_count=rejected,
        unknown_count=max(0, len(items) - accepted - rejected),
        acceptance_rate=round_half_up(accepted / len(items) * 100),
    )
