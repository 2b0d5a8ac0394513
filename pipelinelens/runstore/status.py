from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from .models import StepExecution

StatusBucket = Literal["active", "failed", "succeeded", "paused", "other"]

ACTIVE_STATUSES = frozenset({"queued", "running", "in_progress"})
FAILED_STATUSES = frozenset({"failed", "error"})
SUCCESS_STATUSES = frozenset({"succeeded", "completed", "success", "done"})
PAUSED_STATUSES = frozenset({"paused"})


@dataclass
class StepSummary:
    succeeded: int = 0
    failed: int = 0
    active: int = 0
    other: int = 0


def _normalize(status: Optional[str]) -> str:
    return str(status or "").strip().lower()


def is_active_status(status: Optional[str]) -> bool:
    return _normalize(status) in ACTIVE_STATUSES


def is_failed_status(status: Optional[str]) -> bool:
    return _normalize(status) in FAILED_STATUSES


def is_success_status(status: Optional[str]) -> bool:
    return _normalize(status) in SUCCESS_STATUSES


def is_paused_status(status: Optional[str]) -> bool:
    return _normalize(status) in PAUSED_STATUSES


def status_bucket(status: Optional[str]) -> StatusBucket:
    normalized = _normalize(status)
    if normalized in ACTIVE_STATUSES:
        return "active"
    if normalized in FAILED_STATUSES:
        return "failed"
    if normalized in SUCCESS_STATUSES:
        return "succeeded"
    if normalized in PAUSED_STATUSES:
        return "paused"
    return "other"


def format_status_label(status: Optional[str]) -> str:
    if not status:
        return "Unknown"
    tokens = [token for token in status.replace("_", " ").split(" ") if token]
    return " ".join(token[:1].upper() + token[1:] for token in tokens)


def summarize_steps(steps: Iterable[StepExecution]) -> StepSummary:
    summary = StepSummary()
    for step in steps:
        bucket = status_bucket(step.status)
        if bucket == "succeeded":
            summary.succeeded += 1
        elif bucket == "failed":
            summary.failed += 1
        elif bucket == "active":
            summary.active += 1
        else:
            summary.other += 1
    return summary
