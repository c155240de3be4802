from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, Type


class RetryPort(Protocol):
    """Retries an idempotent async read with backoff.

    The controller only routes result fetches through this port; submissions
    are never repeated. Policy values left as None fall back to the
    implementation's defaults.
    """

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        attempts: Optional[int] = None,
        wait_initial: Optional[float] = None,
        wait_max: Optional[float] = None,
        exception_types: Optional[Sequence[Type[BaseException]]] = None,
        **kwargs: Any,
    ) -> Any:  # pragma: no cover - protocol
        """Await `func(*args, **kwargs)` until it succeeds or attempts run out.

        Only exceptions of `exception_types` are retried; anything else, and
        the last retryable exception, propagates unchanged.
        """
        ...
