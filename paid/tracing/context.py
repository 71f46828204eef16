"""
Ambient tracing context.

Holds the customer/product attribution for the current logical call using
``contextvars``, so values follow the asyncio task chain rather than the OS
thread. Nested scopes shadow outer values and restore them on exit.
"""

import inspect
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TracingContext:
    """Attribution values for spans created inside ``run_with_context``."""

    external_customer_id: Optional[str] = None
    external_product_id: Optional[str] = None
    store_prompt: bool = False
    metadata: Optional[Dict[str, Any]] = None

    @property
    def has_identity(self) -> bool:
        return bool(self.external_customer_id or self.external_product_id)


_DEFAULT_CONTEXT = TracingContext()

_tracing_context: ContextVar[Optional[TracingContext]] = ContextVar(
    "paid_tracing_context",
    default=None,
)


def get_context() -> TracingContext:
    """Return the active tracing context, or the empty default outside any scope."""
    return _tracing_context.get() or _DEFAULT_CONTEXT


@contextmanager
def tracing_context(ctx: TracingContext) -> Iterator[TracingContext]:
    """Make ``ctx`` the ambient context for the duration of a ``with`` block."""
    token = _tracing_context.set(ctx)
    try:
        yield ctx
    finally:
        _tracing_context.reset(token)


async def _await_in_context(ctx: TracingContext, awaitable: Awaitable[T]) -> T:
    with tracing_context(ctx):
        return await awaitable


def run_with_context(ctx: TracingContext, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Call ``fn`` with ``ctx`` as the ambient tracing context.

    When ``fn`` returns an awaitable (an ``async def`` function, or a sync
    function returning a coroutine) the result is an awaitable that installs
    ``ctx`` for the whole awaited extent, in the task that awaits it.

    Args:
        ctx: Context to install
        fn: Callable to run
        *args: Positional arguments for ``fn``
        **kwargs: Keyword arguments for ``fn``

    Returns:
        ``fn``'s result, or an awaitable of it

    Example:
        >>> ctx = TracingContext(external_customer_id="cust_1")
        >>> run_with_context(ctx, lambda: get_context().external_customer_id)
        'cust_1'
        >>> await run_with_context(ctx, fetch_completion, prompt)  # async fn
    """
    with tracing_context(ctx):
        result = fn(*args, **kwargs)

    if inspect.isawaitable(result):
        return _await_in_context(ctx, result)
    return result
