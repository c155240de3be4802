from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Port used by core code to emit log records.

    Messages follow the `[area:event] key=value` convention, e.g.
    `[job:poll] job_id=... attempt=3 status=IN_PROGRESS`.
    """

    @abstractmethod
    def info(self, msg: str, *args):
        pass

    @abstractmethod
    def warning(self, msg: str, *args):
        pass

    @abstractmethod
    def error(self, msg: str, *args):
        pass

    @abstractmethod
    def debug(self, msg: str, *args):
        pass
