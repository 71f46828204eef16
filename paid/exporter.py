"""
OTLP exporter configuration for the Paid collector.

Configures OpenTelemetry's OTLP/HTTP exporter and the processor that feeds it.
Authentication travels with each span as the ``token`` attribute, so the
exporter itself carries no credentials.
"""

from typing import Optional

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace import SpanProcessor
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)

from .config import PaidConfig


def create_paid_exporter(config: PaidConfig) -> SpanExporter:
    """
    Create OTLP span exporter configured for the Paid collector.

    Args:
        config: Paid configuration instance

    Returns:
        Configured OTLPSpanExporter instance

    Example:
        >>> config = PaidConfig(api_key="paid_secret")
        >>> exporter = create_paid_exporter(config)
    """
    return OTLPSpanExporter(
        endpoint=config.collector_endpoint,
        timeout=config.export_timeout,
    )


def create_export_processor(
    config: PaidConfig,
    span_exporter: Optional[SpanExporter] = None,
) -> SpanProcessor:
    """
    Create the processor that hands finished spans to the exporter.

    Args:
        config: Paid configuration instance
        span_exporter: Exporter to use instead of the collector exporter

    Returns:
        BatchSpanProcessor, or SimpleSpanProcessor when batching is disabled
    """
    exporter = span_exporter or create_paid_exporter(config)
    if config.batch_export:
        return BatchSpanProcessor(
            exporter,
            export_timeout_millis=config.export_timeout * 1000,
        )
    return SimpleSpanProcessor(exporter)
