# shopsearch/utils/timeouts.py
from __future__ import annotations
from typing import Awaitable, Optional, TypeVar
import asyncio
import inspect

from shopsearch.domain.errors import CollaboratorTimeout

T = TypeVar("T")


def remaining(budget_s: float, deadline: Optional[float] = None) -> float:
    """Budget shortened by the caller's deadline (event-loop time), if any."""
    if deadline is None:
        return budget_s
    return max(0.0, min(budget_s, deadline - asyncio.get_running_loop().time()))


async def bounded(
    awaitable: Awaitable[T],
    budget_s: float,
    *,
    operation: str,
    deadline: Optional[float] = None,
) -> T:
    """
    Await `awaitable` for at most `budget_s` seconds (or until `deadline`).
    Raises CollaboratorTimeout instead of asyncio.TimeoutError so callers can
    treat a timeout like any other collaborator failure.
    """
    timeout = remaining(budget_s, deadline)
    if timeout <= 0:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        elif isinstance(awaitable, asyncio.Future):
            awaitable.cancel()
        raise CollaboratorTimeout(operation, 0.0)
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise CollaboratorTimeout(operation, timeout) from None
