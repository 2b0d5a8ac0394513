from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from pipelinelens.runstore.models import PipelineRun, Project


@dataclass(frozen=True)
class SelectionContext:
    project_id: Optional[str] = None


@dataclass
class ProjectSelection:
    project: Optional[Project]
    changed: bool

    def context(self) -> SelectionContext:
        return SelectionContext(project_id=self.project.id if self.project else None)


def in_context(run: PipelineRun, context: Optional[SelectionContext]) -> bool:
    # Runs without a project id come from a project-scoped listing and always qualify.
    if context is None or not context.project_id or not run.project_id:
        return True
    return run.project_id == context.project_id


def resolve_active_project(projects: Iterable[Project], preferred_project_id: Optional[str]) -> ProjectSelection:
    """Pick the project a view works in.

    The caller's remembered choice wins when it still exists; otherwise the
    first project is used. `changed` tells the caller to update what it
    remembers.
    """
    items = list(projects)
    preferred = (preferred_project_id or "").strip() or None
    active = None
    if preferred:
        active = next((project for project in items if project.id == preferred), None)
    if active is None and items:
        active = items[0]
    changed = (active.id if active else None) != preferred
    return ProjectSelection(project=active, changed=changed)
