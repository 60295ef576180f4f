"""
Logging for the provider and its collaborators.

Every logger lives under the ``remote_config.`` namespace and writes one
line per record to stdout, either as a JSON object or as plain text.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object"""

    RESERVED = (
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "service",
        "message", "taskName",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # caller-supplied `extra` keys
        for key, value in record.__dict__.items():
            if key not in self.RESERVED:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Stamp the component name onto every record"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """
    (Re)build the stdout handler of ``remote_config.<service_name>``.

    Args:
        service_name: Dotted component name, e.g. "config.provider"
        log_level: Level name; unknown names fall back to INFO
        json_format: JsonFormatter when true, a one-line text format otherwise

    Returns:
        The underlying logging.Logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"remote_config.{service_name}")
    logger.setLevel(numeric_level)

    # calling twice must not stack handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # the root logger may have its own handler; avoid duplicate lines
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Module-level logger for a provider component.

    Level and format come from REMOTE_CONFIG_LOG_LEVEL and
    REMOTE_CONFIG_LOG_FORMAT; the CLI may later override both through
    reconfigure_service_loggers().
    """
    log_level = os.environ.get("REMOTE_CONFIG_LOG_LEVEL", "INFO")
    json_format = os.environ.get("REMOTE_CONFIG_LOG_FORMAT", "json").lower() == "json"

    logger = setup_logging(service_name, log_level, json_format)
    return ServiceLoggerAdapter(logger, {"service": service_name})


def reconfigure_service_loggers(log_level: str, json_format: bool) -> None:
    """
    Re-apply setup_logging to every service logger created so far.

    Module-level loggers are built at import time, before the CLI has
    parsed --verbose.
    """
    prefix = "remote_config."
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(prefix):
            setup_logging(name[len(prefix):], log_level, json_format)
