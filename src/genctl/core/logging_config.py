"""Central logging configuration utilities.

A single composition-root driven `configure_logging` wires separate
stdout/stderr sinks and injects the id of the job being driven into all log
records. Adapters and core code never mutate global logging; they only emit
via `LoggingPort` or standard module loggers.

The job id travels in a context variable. Each controller run is its own
asyncio task, and tasks copy the context they were created in, so setting the
variable at the top of a run tags every record that run emits without
threading the id through each call.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional
import contextvars

job_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "job_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s job=%(job_id)s: %(message)s"
)


def _coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    mapping = logging.getLevelNamesMapping()
    return mapping.get(key, logging.INFO)


class _JobIdFilter(logging.Filter):
    """Inject the current job id from the contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.job_id = job_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


class _MinLevelFilter(logging.Filter):
    def __init__(self, min_level: int):
        super().__init__()
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno >= self.min_level


def _stream_handler(
    stream,
    level_filter: logging.Filter,
    job_filter: logging.Filter,
    formatter: logging.Formatter,
) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream=stream)
    handler.addFilter(level_filter)
    handler.addFilter(job_filter)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_http: bool = True,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & job id.

    Notes
    -----
    * Existing root handlers are replaced, so calling this twice is safe.
    * `quiet_http` raises aiohttp's own loggers to WARNING.
    """
    numeric_level = _coerce_level(level)
    fmt = fmt or DEFAULT_FORMAT

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt)
    job_filter = _JobIdFilter()

    # DEBUG/INFO -> stdout, WARNING+ -> stderr
    for stream, level_filter in (
        (sys.stdout, _MaxLevelFilter(logging.INFO)),
        (sys.stderr, _MinLevelFilter(logging.WARNING)),
    ):
        root.addHandler(_stream_handler(stream, level_filter, job_filter, formatter))

    if quiet_http:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("genctl").debug(
        "Logging configured level=%s quiet_http=%s", numeric_level, quiet_http
    )
