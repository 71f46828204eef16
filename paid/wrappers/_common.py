"""
Shared plumbing for explicit vendor client wrappers.

Wrappers patch bound methods on a client instance with ``wrapt`` function
wrappers. Attribution (customer, product, token) is added by
``PaidSpanProcessor`` on span start; wrappers only add the GenAI attributes
they can read from the request and the response.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Optional

import wrapt
from opentelemetry.trace import Span, Status, StatusCode, Tracer, use_span

from ..exceptions import ConfigurationError, PreconditionFailed
from ..tracing.context import get_context
from ..tracing.tracing import get_paid_tracer, get_token

logger = logging.getLogger(__name__)

# (span, response) -> None; records response-derived attributes
ResponseRecorder = Callable[[Span, Any], None]

_WRAPPED_MARKER = "_self_paid_wrapped"


def require_tracer() -> Tracer:
    tracer = get_paid_tracer()
    if tracer is None or get_token() is None:
        raise ConfigurationError(
            "Paid tracer is not initialized. Make sure to call initialize_tracing() first."
        )
    return tracer


def require_attribution() -> Tracer:
    """
    Return the tracer, checking the active context carries a customer id.

    Raises:
        ConfigurationError: Tracing is not initialized
        PreconditionFailed: Called outside ``trace()``
    """
    tracer = require_tracer()
    ctx = get_context()
    if not ctx.external_customer_id:
        raise PreconditionFailed(
            "Missing external_customer_id. This wrapper should be used inside a callback to trace().",
            missing=["external_customer_id"],
        )
    return tracer


def mark_failed(span: Span, error: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.record_exception(error)


def _record(recorder: Optional[ResponseRecorder], span: Span, response: Any) -> None:
    if recorder is None:
        return
    try:
        recorder(span, response)
    except Exception as e:
        # Missing usage data must not fail the vendor call.
        logger.debug(f"Could not record response attributes: {e}")


def _succeed(span: Span, recorder: Optional[ResponseRecorder], response: Any) -> None:
    _record(recorder, span, response)
    span.set_status(Status(StatusCode.OK))


async def _finish_when_awaited(span: Span, awaitable: Any, recorder: Optional[ResponseRecorder]) -> Any:
    with use_span(span, end_on_exit=True, record_exception=False, set_status_on_exception=False):
        try:
            response = await awaitable
        except Exception as e:
            mark_failed(span, e)
            raise
        _succeed(span, recorder, response)
        return response


def _is_async_method(wrapped: Callable[..., Any]) -> bool:
    # SDK decorators often hide an ``async def`` behind a sync functools.wraps wrapper.
    try:
        return inspect.iscoroutinefunction(inspect.unwrap(wrapped))
    except ValueError:
        return False


async def _traced_async(
    wrapped: Callable[..., Any],
    tracer: Tracer,
    span_name: str,
    attributes: Dict[str, Any],
    args: tuple,
    kwargs: dict,
    recorder: Optional[ResponseRecorder],
) -> Any:
    span = tracer.start_span(span_name, attributes=attributes)
    try:
        awaitable = wrapped(*args, **kwargs)
    except Exception as e:
        mark_failed(span, e)
        span.end()
        raise
    return await _finish_when_awaited(span, awaitable, recorder)


def traced(
    wrapped: Callable[..., Any],
    tracer: Tracer,
    span_name: str,
    attributes: Dict[str, Any],
    args: tuple,
    kwargs: dict,
    recorder: Optional[ResponseRecorder] = None,
) -> Any:
    """
    Call ``wrapped`` inside a new current span.

    For async methods the span starts when the returned coroutine is awaited,
    so a coroutine that is never awaited leaves no span behind. A sync
    callable that still returns an awaitable gets its span ended once that
    awaitable resolves; if it is never awaited, the span stays open.
    """
    if _is_async_method(wrapped):
        return _traced_async(wrapped, tracer, span_name, attributes, args, kwargs, recorder)

    span = tracer.start_span(span_name, attributes=attributes)

    with use_span(span, end_on_exit=False, record_exception=False, set_status_on_exception=False):
        try:
            result = wrapped(*args, **kwargs)
        except Exception as e:
            mark_failed(span, e)
            span.end()
            raise

    if inspect.isawaitable(result):
        return _finish_when_awaited(span, result, recorder)

    try:
        _succeed(span, recorder, result)
    finally:
        span.end()
    return result


def patch_method(owner: Any, name: str, wrapper: Callable[..., Any]) -> bool:
    """
    Replace ``owner.name`` with a ``wrapt`` function wrapper, at most once.

    Returns:
        False when ``owner`` has no such method
    """
    if owner is None:
        return False
    method = getattr(owner, name, None)
    if method is None:
        return False
    if getattr(method, _WRAPPED_MARKER, False) is True:
        logger.debug(f"{type(owner).__name__}.{name} is already wrapped")
        return True

    function_wrapper = wrapt.FunctionWrapper(method, wrapper)
    setattr(function_wrapper, _WRAPPED_MARKER, True)
    setattr(owner, name, function_wrapper)
    return True


def get_path(obj: Any, path: str) -> Any:
    """Resolve a dotted attribute path, or None if any part is missing."""
    for part in path.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj
