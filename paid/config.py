"""
Configuration management for the Paid tracing SDK.

Supports both programmatic configuration and environment variable-based configuration
following the 12-factor app pattern.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_COLLECTOR_ENDPOINT = "https://collector.agentpaid.io:4318/v1/traces"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class PaidConfig:
    """
    Configuration for the Paid tracing SDK.

    Explicit values passed to ``from_env`` take precedence over environment
    variables, which take precedence over the defaults below.
    """

    # ========== Required Configuration ==========
    api_key: str
    """Paid API key, attached to every span as the ``token`` attribute"""

    # ========== Export Configuration ==========
    collector_endpoint: str = DEFAULT_COLLECTOR_ENDPOINT
    """OTLP/HTTP traces endpoint of the Paid collector"""

    export_timeout: int = 10
    """Exporter request timeout in seconds"""

    batch_export: bool = True
    """Batch spans before export (False exports each span as it ends)"""

    # ========== Tracing Control ==========
    enabled: bool = True
    """Enable/disable tracing (if False, initialization is skipped)"""

    log_level: Optional[str] = None
    """Level for the ``paid`` logger (unset leaves logging untouched)"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self):
        """
        Validate configuration parameters.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.api_key:
            raise ValueError("api_key is required")

        if not self.collector_endpoint:
            raise ValueError("collector_endpoint is required")
        if not self.collector_endpoint.startswith(("http://", "https://")):
            raise ValueError("collector_endpoint must start with http:// or https://")

        if self.export_timeout <= 0:
            raise ValueError("export_timeout must be positive")

        if self.log_level is not None and self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")

    @classmethod
    def from_env(cls, **overrides) -> "PaidConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            PAID_API_KEY - API key (required)
            PAID_OTEL_COLLECTOR_ENDPOINT - Collector endpoint
            PAID_EXPORT_TIMEOUT - Exporter timeout in seconds (default: 10)
            PAID_BATCH_EXPORT - Batch spans before export (default: true)
            PAID_ENABLED - Enable tracing (default: true)
            PAID_LOG_LEVEL - Level for the ``paid`` logger

        Args:
            **overrides: Override specific configuration values

        Returns:
            PaidConfig instance

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        api_key = overrides.get("api_key") or os.getenv("PAID_API_KEY")
        if not api_key:
            raise ValueError(
                "API key must be provided via the PAID_API_KEY environment variable"
            )

        collector_endpoint = overrides.get("collector_endpoint") or os.getenv(
            "PAID_OTEL_COLLECTOR_ENDPOINT", DEFAULT_COLLECTOR_ENDPOINT
        )
        export_timeout = int(
            overrides.get("export_timeout") or os.getenv("PAID_EXPORT_TIMEOUT", "10")
        )
        batch_export = cls._parse_bool(
            overrides.get("batch_export"),
            os.getenv("PAID_BATCH_EXPORT", "true")
        )
        enabled = cls._parse_bool(
            overrides.get("enabled"),
            os.getenv("PAID_ENABLED", "true")
        )
        log_level = overrides.get("log_level") or os.getenv("PAID_LOG_LEVEL") or None

        return cls(
            api_key=api_key,
            collector_endpoint=collector_endpoint,
            export_timeout=export_timeout,
            batch_export=batch_export,
            enabled=enabled,
            log_level=log_level,
        )

    @staticmethod
    def is_enabled_in_env() -> bool:
        """Check ``PAID_ENABLED`` without requiring an API key."""
        return PaidConfig._parse_bool(None, os.getenv("PAID_ENABLED", "true"))

    @staticmethod
    def _parse_bool(override_value: Optional[bool], env_value: str) -> bool:
        """
        Parse boolean value from override or environment variable.

        Args:
            override_value: Explicit override value (takes precedence)
            env_value: Environment variable string value

        Returns:
            Boolean value
        """
        if override_value is not None:
            return bool(override_value)

        env_lower = env_value.lower().strip()
        return env_lower in ("true", "1", "yes", "on", "enabled")

    def apply_log_level(self) -> None:
        """Set the ``paid`` package logger to the configured level."""
        if self.log_level:
            logging.getLogger("paid").setLevel(self.log_level.upper())

    def __repr__(self) -> str:
        """Safe string representation (masks API key)."""
        masked_key = f"{self.api_key[:4]}...{self.api_key[-4:]}" if len(self.api_key) > 11 else "***"
        return (
            f"PaidConfig("
            f"api_key='{masked_key}', "
            f"collector_endpoint='{self.collector_endpoint}', "
            f"batch_export={self.batch_export}, "
            f"enabled={self.enabled})"
        )
