"""Tests for configuration and exporter setup."""

import logging
import os
from unittest.mock import patch

import pytest
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from paid.config import DEFAULT_COLLECTOR_ENDPOINT, PaidConfig
from paid.exporter import create_export_processor, create_paid_exporter


class TestPaidConfig:
    """Test configuration functionality."""

    def test_config_from_env(self):
        with patch.dict(os.environ, {
            "PAID_API_KEY": "paid_env_key",
            "PAID_OTEL_COLLECTOR_ENDPOINT": "http://localhost:4318/v1/traces",
            "PAID_EXPORT_TIMEOUT": "3",
            "PAID_BATCH_EXPORT": "no",
            "PAID_LOG_LEVEL": "warning",
        }):
            config = PaidConfig.from_env()

        assert config.api_key == "paid_env_key"
        assert config.collector_endpoint == "http://localhost:4318/v1/traces"
        assert config.export_timeout == 3
        assert config.batch_export is False
        assert config.enabled is True
        assert config.log_level == "warning"

    def test_defaults(self):
        config = PaidConfig.from_env(api_key="paid_key")

        assert config.collector_endpoint == DEFAULT_COLLECTOR_ENDPOINT
        assert config.export_timeout == 10
        assert config.batch_export is True

    def test_overrides_take_precedence(self):
        with patch.dict(os.environ, {"PAID_API_KEY": "from_env", "PAID_BATCH_EXPORT": "true"}):
            config = PaidConfig.from_env(api_key="from_arg", batch_export=False)

        assert config.api_key == "from_arg"
        assert config.batch_export is False

    def test_missing_api_key(self):
        with pytest.raises(ValueError, match="PAID_API_KEY"):
            PaidConfig.from_env()

    def test_validation(self):
        with pytest.raises(ValueError, match="http"):
            PaidConfig(api_key="k", collector_endpoint="collector.local")
        with pytest.raises(ValueError, match="export_timeout"):
            PaidConfig(api_key="k", export_timeout=0)
        with pytest.raises(ValueError, match="log_level"):
            PaidConfig(api_key="k", log_level="verbose")

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("off", False), ("", False)])
    def test_is_enabled_in_env(self, value, expected):
        with patch.dict(os.environ, {"PAID_ENABLED": value}):
            assert PaidConfig.is_enabled_in_env() is expected

    def test_repr_masks_api_key(self):
        config = PaidConfig(api_key="paid_live_1234567890abcd")

        assert "paid_live_1234567890abcd" not in repr(config)
        assert "paid...abcd" in repr(config)

    def test_apply_log_level(self):
        logger = logging.getLogger("paid")
        try:
            PaidConfig(api_key="k", log_level="error").apply_log_level()
            assert logger.level == logging.ERROR
        finally:
            logger.setLevel(logging.NOTSET)


class TestExporter:
    """Test exporter and export processor creation."""

    def test_collector_exporter(self):
        exporter = create_paid_exporter(PaidConfig(api_key="k"))
        assert isinstance(exporter, OTLPSpanExporter)

    def test_batch_processor_by_default(self):
        processor = create_export_processor(PaidConfig(api_key="k"), InMemorySpanExporter())
        try:
            assert isinstance(processor, BatchSpanProcessor)
        finally:
            processor.shutdown()

    def test_simple_processor_when_batching_disabled(self):
        processor = create_export_processor(PaidConfig(api_key="k", batch_export=False), InMemorySpanExporter())
        assert isinstance(processor, SimpleSpanProcessor)
