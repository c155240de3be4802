from typing import Any, Awaitable, Callable, Optional, Sequence, Type

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from genctl.core.settings import logger


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        f"[retry] attempt={state.attempt_number} failed "
        f"error={type(exc).__name__ if exc else None}: {exc}"
    )


class TenacityRetryAdapter:
    """RetryPort backed by tenacity's AsyncRetrying.

    Exponential backoff between `wait_initial` and `wait_max` seconds. Every
    policy value can be overridden per call by keyword; the remaining kwargs go
    to the wrapped callable. The last exception is re-raised once attempts run
    out, and each retry is logged as a warning.
    """

    def __init__(
        self,
        attempts: int = 3,
        wait_initial: float = 0.5,
        wait_max: float = 4.0,
        exception_types: Sequence[Type[BaseException]] = (Exception,),
    ) -> None:
        self.attempts = attempts
        self.wait_initial = wait_initial
        self.wait_max = wait_max
        self.exception_types = tuple(exception_types)

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        attempts: Optional[int] = None,
        wait_initial: Optional[float] = None,
        wait_max: Optional[float] = None,
        exception_types: Optional[Sequence[Type[BaseException]]] = None,
        **kwargs: Any,
    ) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts or self.attempts),
            wait=wait_exponential(
                multiplier=wait_initial or self.wait_initial,
                max=wait_max or self.wait_max,
            ),
            retry=retry_if_exception_type(tuple(exception_types or self.exception_types)),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:  # pragma: no cover - control flow instrumentation
            with attempt:
                return await func(*args, **kwargs)
