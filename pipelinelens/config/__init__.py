from .config import (
    Config,
    ConfigError,
    apply_env,
    default_config,
    default_config_path,
    load_from_file,
    parse_listen_addr,
    resolve_config,
    validate,
)

__all__ = [
    "Config",
    "ConfigError",
    "apply_env",
    "default_config",
    "default_config_path",
    "load_from_file",
    "parse_listen_addr",
    "resolve_config",
    "validate",
]
