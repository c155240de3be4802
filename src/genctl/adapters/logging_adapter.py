import logging
from genctl.core.interfaces.logging import LoggingPort
from genctl.core.logging_config import _coerce_level


class LoggingAdapter(LoggingPort):
    """Concrete logging adapter.

    Delegates to Python's logging without adding handlers of its own, so
    `configure_logging` alone decides the sinks. The job id is injected by the
    root handlers' filter; this adapter simply emits.
    """

    def __init__(self, name: str = "genctl", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_coerce_level(log_level))
        self.logger.propagate = True
        self.logger.debug("Initialized logger name=%s level=%s", name, self.logger.level)

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self.logger.error(msg, *args)

    def debug(self, msg: str, *args):
        self.logger.debug(msg, *args)
