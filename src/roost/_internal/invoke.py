"""Await-if-needed calls for user callables.

Handlers, fallbacks, startup hooks and the state function may be plain
functions or coroutines.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func*; await what it returns when that is awaitable."""
    result = func(*args, **kwargs)
    return await result if inspect.isawaitable(result) else result
