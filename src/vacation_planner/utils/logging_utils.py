"""Logging setup shared by tasks, DAGs and CLI entrypoints."""
from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_logging_config(level: str = "INFO", job_name: str | None = None) -> Dict[str, Any]:
    """Return a ``dictConfig`` payload that logs to stdout."""
    fmt = DEFAULT_FORMAT if not job_name else f"%(asctime)s %(levelname)s [{job_name}] %(name)s %(message)s"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": fmt},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level.upper(),
            "handlers": ["stdout"],
        },
    }


def setup_logging(level: str = "INFO", job_name: str | None = None) -> None:
    """Configure root logging once per process."""
    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))


class TaggedLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with ``[tag]`` so interleaved task logs stay readable."""

    def process(self, msg, kwargs):
        return f"[{self.extra['tag']}] {msg}", kwargs


def get_tagged_logger(name: str, tag: str) -> TaggedLoggerAdapter:
    """Return a logger adapter that injects ``tag`` into every record."""
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag})
