"""
Logging helpers for the provider.

All loggers live under the ``bitbucket_server_provider`` namespace so a host
can tune them as a group. Credentials are masked before anything is logged.
"""

import logging
from typing import Any

_provider_logger = logging.getLogger("bitbucket_server_provider")

_SENSITIVE_KEYS = {"token", "password", "authorization", "secret"}


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure provider logging.

    Args:
        level: Log level for all provider loggers (default: INFO)
        http_level: Log level for the HTTP client logger (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: timestamp, logger name, level)
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))

    # Replace rather than stack handlers when called more than once
    for existing in list(_provider_logger.handlers):
        _provider_logger.removeHandler(existing)

    _provider_logger.setLevel(level)
    _provider_logger.addHandler(handler)
    get_logger("http").setLevel(http_level if http_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the provider logger, or the child logger ``name``."""
    if name is None:
        return _provider_logger
    return logging.getLogger(f"bitbucket_server_provider.{name}")


def safe_log_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with credential values replaced by ``[REDACTED]``."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if any(sk in key.lower() for sk in _SENSITIVE_KEYS):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value)
        else:
            result[key] = value
    return result
