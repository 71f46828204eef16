"""
Process-wide Paid tracer pipeline.

``initialize_tracing()`` builds one TracerProvider carrying the attribution
processors and the collector exporter. Everything else in the SDK (signals,
wrappers, auto-instrumentation) reads it through the getters below.
"""

import atexit
import inspect
import logging
import threading
from typing import Any, Callable, List, Optional

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import SpanExporter
from opentelemetry.trace import Span, Status, StatusCode, Tracer, use_span

from ..config import PaidConfig
from ..exceptions import ConfigurationError, InvalidArgument
from ..exporter import create_export_processor
from ..version import __version__
from .attributes import PaidAttributes
from .context import TracingContext, run_with_context, tracing_context
from .genai_processor import GenAISpanProcessor
from .span_processor import PaidSpanProcessor

logger = logging.getLogger(__name__)

TRACER_NAME = "paid.python"
PARENT_SPAN_NAME = "parent_span"

_lock = threading.Lock()
_token: Optional[str] = None
_provider: Optional[TracerProvider] = None
_tracer: Optional[Tracer] = None
_atexit_registered = False


def get_token() -> Optional[str]:
    """Return the API token of the initialized pipeline, if any."""
    return _token


def get_paid_tracer_provider() -> Optional[TracerProvider]:
    return _provider


def get_paid_tracer() -> Optional[Tracer]:
    return _tracer


def is_tracing_initialized() -> bool:
    return _token is not None and _tracer is not None


def create_paid_span_processors() -> List[SpanProcessor]:
    """
    Create the attribution processors, for use with a caller-owned provider.

    Example:
        >>> provider = TracerProvider()
        >>> for processor in create_paid_span_processors():
        ...     provider.add_span_processor(processor)
    """
    return [PaidSpanProcessor(), GenAISpanProcessor()]


def initialize_tracing(
    api_key: Optional[str] = None,
    collector_endpoint: Optional[str] = None,
    *,
    config: Optional[PaidConfig] = None,
    span_exporter: Optional[SpanExporter] = None,
) -> Optional[TracerProvider]:
    """
    Initialize the process-wide tracer pipeline.

    Safe to call repeatedly; only the first successful call has an effect.
    Missing arguments are read from ``PAID_*`` environment variables.

    Args:
        api_key: Paid API key (default: ``PAID_API_KEY``)
        collector_endpoint: OTLP/HTTP traces endpoint
        config: Complete configuration; overrides the other arguments
        span_exporter: Exporter to use instead of the collector exporter

    Returns:
        The tracer provider, or None when tracing is disabled or no API key
        is available
    """
    global _token, _provider, _tracer, _atexit_registered

    with _lock:
        if _token is not None:
            logger.info("Tracing is already initialized - skipping re-initialization")
            return _provider

        if config is None:
            if not PaidConfig.is_enabled_in_env():
                logger.info("Paid tracing is disabled via PAID_ENABLED environment variable")
                return None
            try:
                config = PaidConfig.from_env(
                    api_key=api_key,
                    collector_endpoint=collector_endpoint,
                )
            except ValueError as e:
                logger.error(f"Paid tracing not initialized: {e}")
                return None

        if not config.enabled:
            logger.info("Paid tracing is disabled by configuration")
            return None

        config.apply_log_level()

        provider = TracerProvider(resource=Resource.create({}))
        for processor in create_paid_span_processors():
            provider.add_span_processor(processor)
        provider.add_span_processor(create_export_processor(config, span_exporter))

        _token = config.api_key
        _provider = provider
        _tracer = provider.get_tracer(TRACER_NAME, __version__)

        if not _atexit_registered:
            atexit.register(shutdown_tracing)
            _atexit_registered = True

    logger.info(f"Paid tracing SDK initialized with collector endpoint: {config.collector_endpoint}")
    return provider


def shutdown_tracing() -> None:
    """Flush and shut down the tracer pipeline."""
    provider = _provider
    if provider is None:
        return
    try:
        provider.force_flush()
        provider.shutdown()
        logger.info("Paid tracing SDK shut down")
    except Exception as e:
        logger.error(f"Error shutting down Paid tracing SDK: {e}")


def reset_tracing() -> None:
    """Shut down and forget the pipeline so ``initialize_tracing()`` can run again."""
    global _token, _provider, _tracer

    shutdown_tracing()
    with _lock:
        _token = None
        _provider = None
        _tracer = None


def _require_tracer() -> Tracer:
    if _token is None or _tracer is None:
        raise ConfigurationError(
            "Paid tracing is not initialized. Make sure to call initialize_tracing() first."
        )
    return _tracer


def _start_parent_span(ctx: TracingContext) -> Span:
    tracer = _require_tracer()
    # Started inside the context so the processors see its store_prompt setting.
    with tracing_context(ctx):
        span = tracer.start_span(PARENT_SPAN_NAME)
    span.set_attribute(PaidAttributes.EXTERNAL_CUSTOMER_ID, ctx.external_customer_id)
    span.set_attribute(PaidAttributes.TOKEN, _token)
    if ctx.external_product_id:
        span.set_attribute(PaidAttributes.EXTERNAL_AGENT_ID, ctx.external_product_id)
    return span


def _fail(span: Span, error: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.record_exception(error)


def trace(
    external_customer_id: str,
    fn: Callable[..., Any],
    *args: Any,
    external_product_id: Optional[str] = None,
    store_prompt: bool = False,
    metadata: Optional[dict] = None,
    **kwargs: Any,
) -> Any:
    """
    Run ``fn`` inside a parent span attributed to a customer and product.

    Spans created while ``fn`` runs (auto-instrumented vendor calls, wrappers,
    ``signal()``) become children of the parent span and carry the same
    attribution. Use ``atrace`` for ``async def`` functions.

    Raises:
        ConfigurationError: If tracing is not initialized
        InvalidArgument: If ``fn`` returns an awaitable

    Example:
        >>> initialize_tracing()
        >>> trace("cust_123", answer_question, "hello", external_product_id="agent_1")
    """
    if inspect.iscoroutinefunction(fn):
        raise InvalidArgument("trace() got an async function; use atrace() instead")

    ctx = TracingContext(
        external_customer_id=external_customer_id,
        external_product_id=external_product_id,
        store_prompt=store_prompt,
        metadata=metadata,
    )
    span = _start_parent_span(ctx)

    with use_span(span, end_on_exit=True, record_exception=False, set_status_on_exception=False):
        try:
            result = run_with_context(ctx, fn, *args, **kwargs)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise InvalidArgument("trace() got an async function; use atrace() instead")
        except BaseException as e:
            _fail(span, e)
            raise
        span.set_status(Status(StatusCode.OK))
        return result


async def atrace(
    external_customer_id: str,
    fn: Callable[..., Any],
    *args: Any,
    external_product_id: Optional[str] = None,
    store_prompt: bool = False,
    metadata: Optional[dict] = None,
    **kwargs: Any,
) -> Any:
    """Async variant of ``trace``; ``fn`` may be sync or ``async def``."""
    ctx = TracingContext(
        external_customer_id=external_customer_id,
        external_product_id=external_product_id,
        store_prompt=store_prompt,
        metadata=metadata,
    )
    span = _start_parent_span(ctx)

    with use_span(span, end_on_exit=True, record_exception=False, set_status_on_exception=False):
        try:
            result = run_with_context(ctx, fn, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except BaseException as e:
            _fail(span, e)
            raise
        span.set_status(Status(StatusCode.OK))
        return result
