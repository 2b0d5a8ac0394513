from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def to_jsonable(value: Any) -> Any:
    """Turn dataclasses (and lists or dicts holding them) into plain JSON data."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


def json_response(value: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(content=to_jsonable(value), status_code=status, headers=headers)


def error_response(message: str, status: int = 400, **extra: Any) -> JSONResponse:
    return json_response({"error": message, **extra}, status)
