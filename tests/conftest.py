"""Pytest configuration and fixtures for Paid SDK tests."""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from paid.config import PaidConfig
from paid.tracing import initialize_tracing, reset_tracing
from paid.tracing.genai_processor import GenAISpanProcessor
from paid.tracing.span_processor import PaidSpanProcessor

TEST_API_KEY = "paid_test_secret_key"

_PAID_ENV_VARS = (
    "PAID_API_KEY",
    "PAID_OTEL_COLLECTOR_ENDPOINT",
    "PAID_ENABLED",
    "PAID_LOG_LEVEL",
    "PAID_BATCH_EXPORT",
    "PAID_EXPORT_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate every test from PAID_* variables and from the global pipeline."""
    for name in _PAID_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_tracing()
    yield
    reset_tracing()


@pytest.fixture
def test_config():
    """Create a test configuration exporting synchronously."""
    return PaidConfig(api_key=TEST_API_KEY, batch_export=False)


@pytest.fixture
def span_exporter(test_config):
    """Initialize the global pipeline against an in-memory exporter."""
    exporter = InMemorySpanExporter()
    initialize_tracing(config=test_config, span_exporter=exporter)
    return exporter


@pytest.fixture
def processor_provider():
    """
    A standalone provider carrying both processors, independent of the
    global pipeline. Yields (tracer, exporter).
    """
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(PaidSpanProcessor(token_provider=lambda: "tok_123"))
    provider.add_span_processor(GenAISpanProcessor())
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    yield provider.get_tracer("paid.tests"), exporter
    provider.shutdown()