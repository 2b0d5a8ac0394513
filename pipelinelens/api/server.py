from __future__ import annotations

import time
from typing import Callable, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from pipelinelens.dashboard.loader import PageResult, load_classified_runs, load_module_page, load_phase_page
from pipelinelens.engine.module import format_pipeline_module_label, is_run_in_module, normalize_pipeline_module
from pipelinelens.engine.phase import is_phase_match, phase_label
from pipelinelens.engine.selection import RouteDecision
from pipelinelens.engine.view import run_view_to_dict
from pipelinelens.runstore.client import BackendClient, BackendError
from pipelinelens.util.json import error_response, json_response, to_jsonable
from pipelinelens.util.logging import get_logger
from .types import RedirectResponse, RouteDecisionBody, RunListItem, RunListResponse, RunPageResponse

logger = get_logger("api.server")

_PHASE_TARGETS = ("discovery", "creation")


class Server:
    def __init__(
        self,
        client: BackendClient,
        auth_token: str = "",
        run_list_limit: int = 12,
    ) -> None:
        self._client = client
        self._auth_token = auth_token
        self._run_list_limit = run_list_limit
        self._app = FastAPI()
        self._configure_middleware()
        self._configure_routes()

    def handler(self) -> FastAPI:
        return self._app

    def _configure_middleware(self) -> None:
        self._app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )

        @self._app.middleware("http")
        async def recover_middleware(request: Request, call_next):
            try:
                return await call_next(request)
            except Exception:
                logger.exception("Unhandled error", method=request.method, path=request.url.path)
                return Response(status_code=500)

        @self._app.middleware("http")
        async def auth_middleware(request: Request, call_next):
            if not self._auth_token.strip() or request.url.path == "/healthz":
                return await call_next(request)
            auth = request.headers.get("authorization") or ""
            prefix = "Bearer "
            if not auth.startswith(prefix) or auth[len(prefix) :].strip() != self._auth_token:
                return Response(status_code=401)
            return await call_next(request)

        @self._app.middleware("http")
        async def logging_middleware(request: Request, call_next):
            start = time.time()
            response = await call_next(request)
            duration = int((time.time() - start) * 1000)
            logger.info(
                "http",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                ua=request.headers.get("user-agent", ""),
                duration_ms=duration,
            )
            return response

    def _configure_routes(self) -> None:
        @self._app.get("/healthz")
        def healthz():
            return {"ok": True}

        @self._app.get("/v1/projects/{project_id}/runs")
        def list_runs(project_id: str, phase: str = "", module: str = ""):
            if phase and phase not in _PHASE_TARGETS:
                return error_response(f"unknown phase: {phase}", 400)
            module_target = normalize_pipeline_module(module) if module else None
            if module_target == "unknown":
                return error_response(f"unknown module: {module}", 400)
            try:
                listing = load_classified_runs(self._client, project_id, self._run_list_limit)
            except BackendError as err:
                return error_response(str(err), 502)
            if listing.unauthorized:
                return error_response("unauthorized", 401)
            if listing.error_status is not None:
                return error_response("failed to load runs", _upstream_status(listing.error_status))
            items: List[RunListItem] = []
            for entry in listing.runs:
                if phase and not is_phase_match(entry.phase, phase):  # type: ignore[arg-type]
                    continue
                if module_target and not is_run_in_module(entry.run, module_target):
                    continue
                items.append(
                    {
                        "run": to_jsonable(entry.run),
                        "phase": entry.phase,
                        "phase_label": phase_label(entry.phase),
                        "pipeline_module": format_pipeline_module_label(entry.run.pipeline_module),
                        "has_discovery_snapshots": entry.has_discovery_snapshots,
                    }
                )
            body: RunListResponse = {"project_id": project_id, "runs": items}
            return body

        @self._app.get("/v1/projects/{project_id}/modules/{module}/runs/{run_id}")
        def module_run(project_id: str, module: str, run_id: str, focus: Optional[int] = None):
            target = normalize_pipeline_module(module)
            if target == "unknown":
                return error_response(f"unknown module: {module}", 404)
            return self._page_response(
                lambda: load_module_page(self._client, project_id, run_id, target, self._run_list_limit, focus),
                lambda decision: f"/v1/projects/{project_id}/modules/{decision.target}/runs/{decision.run_id}",
            )

        @self._app.get("/v1/projects/{project_id}/{phase}/runs/{run_id}")
        def phase_run(project_id: str, phase: str, run_id: str, focus: Optional[int] = None):
            if phase not in _PHASE_TARGETS:
                return error_response(f"unknown phase: {phase}", 404)
            return self._page_response(
                lambda: load_phase_page(self._client, project_id, run_id, phase, self._run_list_limit, focus),  # type: ignore[arg-type]
                lambda decision: f"/v1/projects/{project_id}/{decision.target}/runs/{decision.run_id}",
            )

    def _page_response(
        self,
        load: Callable[[], PageResult],
        location_for: Callable[[RouteDecision], str],
    ) -> Response:
        try:
            page = load()
        except BackendError as err:
            return error_response(str(err), 502)
        if page.unauthorized:
            return error_response("unauthorized", 401)
        decision = page.decision
        if decision is None:
            return error_response("failed to load runs", _upstream_status(page.error_status))
        if decision.action == "redirect":
            location = location_for(decision)
            redirect: RedirectResponse = {"decision": _decision_body(decision), "location": location}
            return json_response(redirect, 307, headers={"Location": location})
        if decision.action == "not_found":
            if page.run is not None:
                return error_response("requested step was not found in this run", 404)
            return error_response("run not found", 404)
        if decision.action == "conflict":
            return error_response("run module conflict", 409, decision=_decision_body(decision))
        if page.error_status is not None or page.view is None:
            return error_response("failed to load run", _upstream_status(page.error_status))
        body: RunPageResponse = {
            "decision": _decision_body(decision),
            "view": run_view_to_dict(page.view),
            "snapshots": to_jsonable(page.snapshots),
            "snapshot_stats": to_jsonable(page.snapshot_stats),
            "snapshot_iterations": to_jsonable(page.snapshot_iterations),
            "discovery_steps": to_jsonable(page.discovery_steps),
        }
        return json_response(body)


def _decision_body(decision: RouteDecision) -> RouteDecisionBody:
    return {"action": decision.action, "run_id": decision.run_id, "target": decision.target}


def _upstream_status(status: Optional[int]) -> int:
    if status == 404:
        return 404
    return 502
