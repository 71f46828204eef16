"""
Paid SDK - usage-based billing attribution for AI applications.

Tags OpenTelemetry spans from AI vendor calls with the customer and product
they are billed to, normalizes vendor telemetry to the GenAI semantic
conventions and exports everything to the Paid collector.

Basic Usage:
    >>> from paid import initialize_tracing, trace, signal
    >>> initialize_tracing()  # Reads PAID_API_KEY
    >>> def handle(question):
    ...     answer = client.chat.completions.create(...)
    ...     signal("question_answered", enable_cost_tracing=True)
    ...     return answer
    >>> trace("cust_123", handle, "hi", external_product_id="agent_1")

Auto-Instrumentation:
    >>> from paid import bootstrap_instrumentation
    >>> bootstrap_instrumentation()  # Patches every installed vendor SDK

Explicit Wrappers:
    >>> from paid.wrappers import wrap_openai
    >>> client = wrap_openai(OpenAI())
"""

import logging

from .auto_instrumentation import (
    InstrumentationStatus,
    bootstrap_instrumentation,
    get_registry,
)
from .config import PaidConfig
from .exceptions import (
    ConfigurationError,
    InstrumentationFailure,
    InvalidArgument,
    PaidError,
    PreconditionFailed,
)
from .tracing import (
    GenAISpanProcessor,
    PaidSpanProcessor,
    TracingContext,
    atrace,
    create_paid_span_processors,
    get_context,
    get_paid_tracer,
    get_paid_tracer_provider,
    get_token,
    initialize_tracing,
    run_with_context,
    shutdown_tracing,
    signal,
    trace,
    tracing_context,
)
from .version import __version__, __version_info__

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Configuration
    "PaidConfig",
    # Tracing
    "initialize_tracing",
    "shutdown_tracing",
    "trace",
    "atrace",
    "signal",
    "get_token",
    "get_paid_tracer",
    "get_paid_tracer_provider",
    "create_paid_span_processors",
    "PaidSpanProcessor",
    "GenAISpanProcessor",
    # Context
    "TracingContext",
    "get_context",
    "run_with_context",
    "tracing_context",
    # Auto-instrumentation
    "bootstrap_instrumentation",
    "get_registry",
    "InstrumentationStatus",
    # Exceptions
    "PaidError",
    "ConfigurationError",
    "PreconditionFailed",
    "InvalidArgument",
    "InstrumentationFailure",
]
