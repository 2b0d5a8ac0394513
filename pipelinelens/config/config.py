from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000/api/v1"
DEFAULT_LISTEN_ADDR = "127.0.0.1:8790"
ENV_PREFIX = "PIPELINE_LENS_"


class ConfigError(ValueError):
    pass


@dataclass
class Config:
    api_base_url: str = DEFAULT_API_BASE_URL
    auth_token: str = ""
    poll_interval_ms: int = 5000
    request_timeout_s: float = 10.0
    run_list_limit: int = 12
    listen_addr: str = DEFAULT_LISTEN_ADDR
    log_level: str = "INFO"


def default_config() -> Config:
    return Config()


def default_config_path() -> str:
    return str(Path("~/.pipeline-lens/config.json").expanduser())


def load_from_file(file_path: str) -> Config:
    if not file_path:
        raise ConfigError("path is empty")
    try:
        raw = Path(file_path).expanduser().read_text(encoding="utf-8")
        data = json.loads(raw)
    except (OSError, ValueError) as err:
        raise ConfigError(f"failed to read config {file_path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"config {file_path} must be a json object")
    base = default_config()
    try:
        cfg = Config(
            api_base_url=str(data.get("api_base_url", base.api_base_url)),
            auth_token=str(data.get("auth_token", base.auth_token)),
            poll_interval_ms=int(data.get("poll_interval_ms", base.poll_interval_ms)),
            request_timeout_s=float(data.get("request_timeout_s", base.request_timeout_s)),
            run_list_limit=int(data.get("run_list_limit", base.run_list_limit)),
            listen_addr=str(data.get("listen_addr", base.listen_addr)),
            log_level=str(data.get("log_level", base.log_level)),
        )
    except (TypeError, ValueError) as err:
        raise ConfigError(f"invalid value in {file_path}: {err}") from err
    validate(cfg)
    return cfg


def apply_env(cfg: Config, environ: Optional[Mapping[str, str]] = None) -> Config:
    env = os.environ if environ is None else environ

    def value(name: str) -> str:
        return env.get(ENV_PREFIX + name, "").strip()

    try:
        if value("API_URL"):
            cfg.api_base_url = value("API_URL")
        if value("AUTH_TOKEN"):
            cfg.auth_token = value("AUTH_TOKEN")
        if value("POLL_INTERVAL_MS"):
            cfg.poll_interval_ms = int(value("POLL_INTERVAL_MS"))
        if value("REQUEST_TIMEOUT_S"):
            cfg.request_timeout_s = float(value("REQUEST_TIMEOUT_S"))
        if value("RUN_LIST_LIMIT"):
            cfg.run_list_limit = int(value("RUN_LIST_LIMIT"))
        if value("LISTEN"):
            cfg.listen_addr = value("LISTEN")
        if value("LOG_LEVEL"):
            cfg.log_level = value("LOG_LEVEL")
    except ValueError as err:
        raise ConfigError(f"invalid environment value: {err}") from err
    validate(cfg)
    return cfg


def validate(cfg: Config) -> None:
    if not cfg.api_base_url.strip():
        raise ConfigError("api_base_url is empty")
    if cfg.poll_interval_ms <= 0:
        raise ConfigError("poll_interval_ms must be positive")
    if cfg.request_timeout_s <= 0:
        raise ConfigError("request_timeout_s must be positive")
    if cfg.run_list_limit <= 0:
        raise ConfigError("run_list_limit must be positive")


def parse_listen_addr(addr: str) -> tuple[str, int]:
    trimmed = addr.strip() or DEFAULT_LISTEN_ADDR
    host, _, port_raw = trimmed.rpartition(":") if ":" in trimmed else (trimmed, "", "8790")
    try:
        port = int(port_raw)
    except ValueError:
        port = 8790
    return host or "127.0.0.1", port


def resolve_config(config_path: str = "", environ: Optional[Mapping[str, str]] = None) -> Config:
    """Defaults, then the config file (explicit path, PIPELINE_LENS_CONFIG, or ~/.pipeline-lens/config.json), then env."""
    env = os.environ if environ is None else environ
    path = config_path or env.get(ENV_PREFIX + "CONFIG", "").strip()
    if path:
        cfg = load_from_file(path)
    elif Path(default_config_path()).exists():
        cfg = load_from_file(default_config_path())
    else:
        cfg = default_config()
    return apply_env(cfg, env)
