import inspect
from typing import Any, Callable


async def invoke_callback(callback: Callable[..., Any], *args: Any) -> Any:
    """Call a plain or async callable and await its result when needed."""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def callback_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or type(callback).__name__
