"""
Auto-instrumentation for AI vendor SDKs.

Applies the OpenTelemetry contrib instrumentors for OpenAI, Anthropic,
Google Gen AI, AWS Bedrock and Mistral against the Paid tracer provider.
"""

from .registry import (
    InstrumentationRegistry,
    InstrumentationStatus,
    VendorInstrumentation,
    bootstrap_instrumentation,
    get_registry,
    get_status,
    is_instrumented,
    uninstrument,
    uninstrument_all,
)

__all__ = [
    "InstrumentationRegistry",
    "InstrumentationStatus",
    "VendorInstrumentation",
    "bootstrap_instrumentation",
    "get_registry",
    "get_status",
    "is_instrumented",
    "uninstrument",
    "uninstrument_all",
]
