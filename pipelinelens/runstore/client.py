from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from pipelinelens.util.logging import get_logger
from .decode import (
    discovery_snapshots_from_list,
    progress_from_dict,
    projects_from_payload,
    run_from_dict,
    runs_from_list,
)
from .models import PipelineRun

logger = get_logger("runstore.client")


class BackendError(RuntimeError):
    pass


@dataclass
class JsonResult:
    ok: bool
    status: int
    data: Any = None
    unauthorized: bool = False


class BackendClient:
    """Read-only client for the pipeline backend's run, progress and snapshot endpoints."""

    def __init__(
        self,
        base_url: str,
        auth_token: str = "",
        timeout_s: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url is empty")
        self._base_url = base_url.strip().rstrip("/")
        self._auth_token = auth_token.strip()
        self._client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    def _url(self, path: str) -> str:
        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self._base_url}{normalized}"

    def fetch_json(self, path: str, decode: Optional[Callable[[Any], Any]] = None) -> JsonResult:
        url = self._url(path)
        try:
            resp = self._client.get(url, headers=self._headers())
        except httpx.HTTPError as err:
            logger.warning("Backend request failed", url=url, error=str(err))
            raise BackendError(f"request failed: {url}: {err}") from err
        if resp.status_code == 401:
            return JsonResult(ok=False, status=401, unauthorized=True)
        if resp.status_code >= 400:
            logger.debug("Backend returned error status", url=url, status=resp.status_code)
            return JsonResult(ok=False, status=resp.status_code)
        try:
            payload = resp.json() if resp.content else None
        except ValueError as err:
            raise BackendError(f"invalid json from {url}") from err
        data = decode(payload) if decode and payload is not None else payload
        return JsonResult(ok=True, status=resp.status_code, data=data)

    def list_projects(self) -> JsonResult:
        return self.fetch_json("/projects/?page=1&page_size=100", projects_from_payload)

    def list_runs(self, project_id: str, limit: int = 12) -> JsonResult:
        return self.fetch_json(f"/pipeline/{project_id}/runs?limit={limit}", runs_from_list)

    def get_run(self, project_id: str, run_id: str) -> JsonResult:
        return self.fetch_json(f"/pipeline/{project_id}/runs/{run_id}", _dict_or_none(run_from_dict))

    def get_progress(self, project_id: str, run_id: str) -> JsonResult:
        return self.fetch_json(f"/pipeline/{project_id}/runs/{run_id}/progress", _dict_or_none(progress_from_dict))

    def list_discovery_snapshots(self, project_id: str, run_id: str) -> JsonResult:
        return self.fetch_json(
            f"/pipeline/{project_id}/runs/{run_id}/discovery-snapshots",
            discovery_snapshots_from_list,
        )

    def snapshot_presence(self, project_id: str, runs: List[PipelineRun]) -> JsonResult:
        """Report, per run id, whether the backend recorded any discovery snapshots for it.

        A failed lookup for one run counts as "no snapshots"; a 401 on any run
        makes the whole result unauthorized.
        """
        presence: Dict[str, bool] = {}
        for run in runs:
            result = self.list_discovery_snapshots(project_id, run.id)
            if result.unauthorized:
                return JsonResult(ok=False, status=401, unauthorized=True)
            presence[run.id] = bool(result.ok and result.data)
        return JsonResult(ok=True, status=200, data=presence)


def _dict_or_none(decode: Callable[[dict], Any]) -> Callable[[Any], Any]:
    def _decode(payload: Any) -> Any:
        if not isinstance(payload, dict):
            return None
        return decode(payload)

    return _decode
