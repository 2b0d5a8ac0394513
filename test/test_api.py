from __future__ import annotations

from typing import Any, Dict

import httpx
from fastapi.testclient import TestClient

from pipelinelens.api.server import Server
from pipelinelens.runstore.client import BackendClient

BASE_URL = "http://backend.test/api/v1"

DISCOVERY_RUN = {
    "id": "r1",
    "status": "completed",
    "created_at": "2024-01-02T00:00:00Z",
    "project_id": "p1",
    "pipeline_module": "discovery",
    "step_executions": [
        {
            "id": "e1",
            "step_number": 2,
            "step_name": "seed_generation",
            "status": "completed",
            "progress_percent": 100,
            "completed_at": "2024-01-02T00:05:00Z",
        },
        {
            "id": "e2",
            "step_number": 8,
            "step_name": "serp_analysis",
            "status": "completed",
            "progress_percent": 100,
            "completed_at": "2024-01-02T00:09:00Z",
        },
    ],
}

CONTENT_RUN = {
    "id": "r2",
    "status": "running",
    "created_at": "2024-01-03T00:00:00Z",
    "project_id": "p1",
    "pipeline_module": "content",
    "parent_run_id": "r1",
    "step_executions": [
        {
            "id": "c1",
            "step_number": 1,
            "step_name": "outline_generation",
            "status": "running",
            "progress_percent": 40,
            "started_at": "2024-01-03T00:01:00Z",
        },
    ],
}


def _backend(overrides: Dict[str, Any] = None) -> BackendClient:
    routes: Dict[str, Any] = {
        "/api/v1/pipeline/p1/runs": [DISCOVERY_RUN, CONTENT_RUN],
        "/api/v1/pipeline/p1/runs/r1": DISCOVERY_RUN,
        "/api/v1/pipeline/p1/runs/r2": CONTENT_RUN,
        "/api/v1/pipeline/p1/runs/r2/progress": {
            "run_id": "r2",
            "status": "running",
            "overall_progress": 73,
            "current_step_name": "outline_generation",
        },
        "/api/v1/pipeline/p1/runs/r1/discovery-snapshots": [
            {"id": "s1", "run_id": "r1", "iteration_index": 0, "topic_name": "beta", "decision": "accepted"},
            {"id": "s2", "run_id": "r1", "iteration_index": 0, "topic_name": "alpha", "decision": "rejected"},
        ],
        "/api/v1/pipeline/p1/runs/r2/discovery-snapshots": [],
    }
    routes.update(overrides or {})

    def handler(request: httpx.Request) -> httpx.Response:
        payload = routes.get(request.url.path)
        if isinstance(payload, int):
            return httpx.Response(payload)
        if payload is None:
            return httpx.Response(404, json={"detail": "not found"})
        return httpx.Response(200, json=payload)

    return BackendClient(BASE_URL, transport=httpx.MockTransport(handler))


def _client(overrides: Dict[str, Any] = None, auth_token: str = "") -> TestClient:
    server = Server(_backend(overrides), auth_token)
    return TestClient(server.handler())


def test_healthz() -> None:
    res = _client().get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


def test_list_runs_with_phase_filter() -> None:
    client = _client()
    res = client.get("/v1/projects/p1/runs")
    assert res.status_code == 200
    body = res.json()
    assert [item["run"]["id"] for item in body["runs"]] == ["r2", "r1"]
    assert body["runs"][1]["has_discovery_snapshots"]

    res = client.get("/v1/projects/p1/runs", params={"phase": "discovery"})
    assert [item["run"]["id"] for item in res.json()["runs"]] == ["r1"]

    res = client.get("/v1/projects/p1/runs", params={"module": "creation"})
    assert [item["run"]["id"] for item in res.json()["runs"]] == ["r2"]

    assert client.get("/v1/projects/p1/runs", params={"phase": "publishing"}).status_code == 400


def test_show_discovery_run() -> None:
    res = _client().get("/v1/projects/p1/discovery/runs/r1")
    assert res.status_code == 200
    body = res.json()
    assert body["decision"]["action"] == "show"
    assert body["view"]["phase"] == "discovery"
    assert body["view"]["overall_progress"] == 100
    assert body["view"]["highlight"]["id"] == "e2"
    assert body["snapshot_stats"]["accepted_count"] == 1
    assert [snapshot["id"] for snapshot in body["snapshots"]] == ["s1", "s2"]
    assert [topic["topic_name"] for topic in body["snapshot_iterations"][0]["snapshots"]] == ["alpha", "beta"]
    states = {step["label"]: step["state"] for step in body["discovery_steps"]}
    assert states["Seeds"] == "completed"
    assert states["SERP"] == "completed"
    assert states["Metrics"] == "idle"


def test_active_run_uses_live_progress() -> None:
    res = _client().get("/v1/projects/p1/creation/runs/r2")
    assert res.status_code == 200
    view = res.json()["view"]
    assert view["overall_progress"] == 73
    assert view["is_live"]
    assert view["is_active"]


def test_phase_mismatch_redirects() -> None:
    res = _client().get("/v1/projects/p1/discovery/runs/r2", follow_redirects=False)
    assert res.status_code == 307
    assert res.headers["location"] == "/v1/projects/p1/discovery/runs/r1"
    assert res.json()["decision"] == {"action": "redirect", "run_id": "r1", "target": "discovery"}


def test_unknown_run_redirects_to_latest() -> None:
    res = _client().get("/v1/projects/p1/creation/runs/missing", follow_redirects=False)
    assert res.status_code == 307
    assert res.headers["location"] == "/v1/projects/p1/creation/runs/r2"


def test_no_runs_is_not_found() -> None:
    client = _client({"/api/v1/pipeline/p1/runs": []})
    assert client.get("/v1/projects/p1/discovery/runs/r1").status_code == 404
    assert client.get("/v1/projects/p1/publishing/runs/r1").status_code == 404


def test_module_route_redirects_to_owning_module() -> None:
    res = _client().get("/v1/projects/p1/modules/discovery/runs/r2", follow_redirects=False)
    assert res.status_code == 307
    assert res.headers["location"] == "/v1/projects/p1/modules/content/runs/r2"

    res = _client().get("/v1/projects/p1/modules/creation/runs/r2")
    assert res.status_code == 200
    assert res.json()["view"]["run_id"] == "r2"
    assert res.json()["snapshot_stats"] is None


def test_module_conflict_when_full_run_disagrees() -> None:
    untagged = dict(CONTENT_RUN, pipeline_module=None, step_executions=[])
    client = _client({"/api/v1/pipeline/p1/runs/r2": untagged})
    res = client.get("/v1/projects/p1/modules/content/runs/r2")
    assert res.status_code == 409
    assert res.json()["decision"]["action"] == "conflict"


def test_upstream_unauthorized() -> None:
    client = _client({"/api/v1/pipeline/p1/runs": 401})
    assert client.get("/v1/projects/p1/discovery/runs/r1").status_code == 401
    assert client.get("/v1/projects/p1/runs").status_code == 401


def test_bearer_auth() -> None:
    client = _client(auth_token="secret")
    assert client.get("/healthz").status_code == 200
    assert client.get("/v1/projects/p1/runs").status_code == 401
    res = client.get("/v1/projects/p1/runs", headers={"Authorization": "Bearer secret"})
    assert res.status_code == 200


def test_focus_on_missing_step_is_not_found() -> None:
    client = _client()
    res = client.get("/v1/projects/p1/discovery/runs/r1", params={"focus": 99})
    assert res.status_code == 404
    assert res.json()["error"] == "requested step was not found in this run"

    res = client.get("/v1/projects/p1/discovery/runs/r1", params={"focus": 2})
    assert res.status_code == 200
    assert res.json()["view"]["highlight"]["id"] == "e1"

    res = client.get("/v1/projects/p1/modules/content/runs/r2", params={"focus": 4})
    assert res.status_code == 404
