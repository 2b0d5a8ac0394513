from __future__ import annotations

from typing import Iterable, List, Tuple

from pipelinelens.runstore.models import PipelineRun, StepExecution
from pipelinelens.util.timeutil import parse_timestamp


def sort_key_newest(run: PipelineRun) -> Tuple[float, float, str]:
    # created_at desc, started_at desc, id asc
    return (-parse_timestamp(run.created_at), -parse_timestamp(run.started_at), run.id)


def sort_runs_newest(runs: Iterable[PipelineRun]) -> List[PipelineRun]:
    return sorted(runs, key=sort_key_newest)


def execution_timestamp(execution: StepExecution) -> float:
    return parse_timestamp(execution.completed_at or execution.started_at)


def execution_sort_key(execution: StepExecution) -> Tuple[float, str]:
    return (execution_timestamp(execution), execution.id)


def order_executions(executions: Iterable[StepExecution]) -> List[StepExecution]:
    """Chronological order of a run's attempts: completed_at, else started_at, else epoch zero; id breaks ties."""
    return sorted(executions, key=execution_sort_key)
