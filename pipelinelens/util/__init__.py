from .json import error_response, json_response, to_jsonable
from .logging import get_logger, setup_logging
from .timeutil import parse_timestamp

__all__ = [
    "error_response",
    "json_response",
    "to_jsonable",
    "get_logger",
    "setup_logging",
    "parse_timestamp",
]
