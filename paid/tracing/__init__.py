"""
Tracing attribution pipeline.

Context propagation, attribution/normalization span processors, the
process-wide tracer pipeline and signal emission.
"""

from .attributes import (
    SPAN_NAME_PREFIX,
    AISDKAttributes,
    EventName,
    GenAIAttributes,
    OperationType,
    PaidAttributes,
)
from .context import TracingContext, get_context, run_with_context, tracing_context
from .genai_processor import GenAISpanProcessor
from .signal import signal
from .span_processor import PaidSpanProcessor
from .tracing import (
    atrace,
    create_paid_span_processors,
    get_paid_tracer,
    get_paid_tracer_provider,
    get_token,
    initialize_tracing,
    is_tracing_initialized,
    reset_tracing,
    shutdown_tracing,
    trace,
)

__all__ = [
    # Context
    "TracingContext",
    "get_context",
    "run_with_context",
    "tracing_context",
    # Processors
    "PaidSpanProcessor",
    "GenAISpanProcessor",
    "create_paid_span_processors",
    # Pipeline
    "initialize_tracing",
    "shutdown_tracing",
    "reset_tracing",
    "is_tracing_initialized",
    "get_token",
    "get_paid_tracer",
    "get_paid_tracer_provider",
    "trace",
    "atrace",
    # Signals
    "signal",
    # Attributes
    "SPAN_NAME_PREFIX",
    "PaidAttributes",
    "GenAIAttributes",
    "AISDKAttributes",
    "OperationType",
    "EventName",
]
