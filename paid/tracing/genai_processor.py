"""
GenAI span processor for generic AI SDK telemetry.

Transforms spans emitted by multi-vendor AI SDK telemetry (``ai.*`` keys) to
follow the OpenTelemetry GenAI semantic conventions and labels them as
billable units. Spans already emitted in canonical form by single-vendor
instrumentation are left alone.

- Maps ``ai.*`` attributes to ``gen_ai.*`` attributes (first writer wins)
- Normalizes provider names and classifies the operation
- Derives total token usage
- Adds Paid attribution and the ``event_name`` billing label

Usage tokens are reported after the model call returns, so mapping is also
applied to vendor keys written after span start.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span, SpanProcessor

from .attributes import (
    AI_SDK_PROMPT_ATTRIBUTE_SUBSTRINGS,
    OPENINFERENCE_SPAN_KIND,
    SIGNAL_SPAN_SUFFIX,
    SPAN_NAME_PREFIX,
    AISDKAttributes,
    EventName,
    GenAIAttributes,
    OpenInferenceSpanKinds,
    OperationType,
    PaidAttributes,
)
from .context import get_context
from .redaction import install_attribute_hook, install_redaction

logger = logging.getLogger(__name__)

ATTRIBUTE_MAPPING: Dict[str, str] = {
    # Model
    AISDKAttributes.MODEL_ID: GenAIAttributes.REQUEST_MODEL,
    AISDKAttributes.MODEL_PROVIDER: GenAIAttributes.PROVIDER_NAME,
    # Usage
    AISDKAttributes.USAGE_PROMPT_TOKENS: GenAIAttributes.USAGE_INPUT_TOKENS,
    AISDKAttributes.USAGE_COMPLETION_TOKENS: GenAIAttributes.USAGE_OUTPUT_TOKENS,
    # Response
    AISDKAttributes.RESPONSE_MODEL: GenAIAttributes.RESPONSE_MODEL,
    AISDKAttributes.RESPONSE_ID: GenAIAttributes.RESPONSE_ID,
    AISDKAttributes.RESPONSE_FINISH_REASON: GenAIAttributes.RESPONSE_FINISH_REASONS,
    # Settings
    AISDKAttributes.SETTINGS_TEMPERATURE: GenAIAttributes.REQUEST_TEMPERATURE,
    AISDKAttributes.SETTINGS_MAX_TOKENS: GenAIAttributes.REQUEST_MAX_TOKENS,
    AISDKAttributes.SETTINGS_TOP_P: GenAIAttributes.REQUEST_TOP_P,
    AISDKAttributes.SETTINGS_FREQUENCY_PENALTY: GenAIAttributes.REQUEST_FREQUENCY_PENALTY,
    AISDKAttributes.SETTINGS_PRESENCE_PENALTY: GenAIAttributes.REQUEST_PRESENCE_PENALTY,
    # Content
    AISDKAttributes.PROMPT: GenAIAttributes.PROMPT,
    AISDKAttributes.RESPONSE_TEXT: GenAIAttributes.COMPLETION,
}

PROVIDER_MAPPING: Dict[str, str] = {
    "openai": "openai",
    "openai.chat": "openai",
    "openai.completion": "openai",
    "openai.embedding": "openai",
    "openai.responses": "openai",
    "anthropic": "anthropic",
    "anthropic.messages": "anthropic",
    "google": "gcp.gemini",
    "google.generative-ai": "gcp.gemini",
    "mistral": "mistral_ai",
    "cohere": "cohere",
    "groq": "groq",
    "bedrock": "aws.bedrock",
    "amazon-bedrock": "aws.bedrock",
    "azure": "azure.ai.openai",
}

AI_SDK_SPAN_NAMES = (
    "ai.generateText",
    "ai.streamText",
    "ai.generateObject",
    "ai.streamObject",
    "ai.embed",
    "ai.embedMany",
    "ai.toolCall",
)

_DETECTION_KEYS = (
    AISDKAttributes.MODEL_ID,
    AISDKAttributes.MODEL_PROVIDER,
    AISDKAttributes.OPERATION_ID,
)


def is_ai_sdk_span(name: str, attributes: Mapping[str, Any]) -> bool:
    """Check whether a span comes from generic AI SDK telemetry."""
    if any(attributes.get(key) for key in _DETECTION_KEYS):
        return True
    return any(pattern in name for pattern in AI_SDK_SPAN_NAMES)


def determine_operation_name(name: str) -> str:
    lowered = name.lower()
    if "embed" in lowered:
        return OperationType.EMBEDDINGS
    if "tool" in lowered:
        return OperationType.EXECUTE_TOOL
    return OperationType.CHAT


def determine_span_kind(operation_name: str) -> str:
    if operation_name == OperationType.EMBEDDINGS:
        return OpenInferenceSpanKinds.EMBEDDING
    if operation_name == OperationType.EXECUTE_TOOL:
        return OpenInferenceSpanKinds.TOOL
    return OpenInferenceSpanKinds.LLM


def normalize_provider(provider: Any) -> Optional[str]:
    """Normalize a provider name to the GenAI semantic convention value."""
    if not provider:
        return None
    normalized = str(provider).lower()
    return PROVIDER_MAPPING.get(normalized, normalized)


def signal_name(name: str) -> str:
    """Return ``paid.trace.<name>.signal``, never adding either part twice."""
    base = name[len(SPAN_NAME_PREFIX):] if name.startswith(SPAN_NAME_PREFIX) else name
    if base.endswith(SIGNAL_SPAN_SUFFIX):
        return f"{SPAN_NAME_PREFIX}{base}"
    return f"{SPAN_NAME_PREFIX}{base}{SIGNAL_SPAN_SUFFIX}"


def map_attributes(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Compute the canonical attributes for a set of AI SDK attributes.

    Canonical keys already present are never overwritten.
    """
    mapped: Dict[str, Any] = {}

    for source_key, canonical_key in ATTRIBUTE_MAPPING.items():
        value = attributes.get(source_key)
        if value is not None and canonical_key not in attributes:
            mapped[canonical_key] = value

    provider = attributes.get(AISDKAttributes.MODEL_PROVIDER) or attributes.get(
        GenAIAttributes.PROVIDER_NAME
    )
    normalized = normalize_provider(provider)
    if normalized:
        if GenAIAttributes.PROVIDER_NAME not in attributes:
            mapped[GenAIAttributes.PROVIDER_NAME] = normalized
        if GenAIAttributes.SYSTEM not in attributes:
            mapped[GenAIAttributes.SYSTEM] = normalized

    if GenAIAttributes.USAGE_TOTAL_TOKENS not in attributes:
        input_tokens = attributes.get(GenAIAttributes.USAGE_INPUT_TOKENS, mapped.get(GenAIAttributes.USAGE_INPUT_TOKENS))
        output_tokens = attributes.get(GenAIAttributes.USAGE_OUTPUT_TOKENS, mapped.get(GenAIAttributes.USAGE_OUTPUT_TOKENS))
        if isinstance(input_tokens, (int, float)) and isinstance(output_tokens, (int, float)):
            mapped[GenAIAttributes.USAGE_TOTAL_TOKENS] = input_tokens + output_tokens

    return mapped


def normalize_written_attributes(span: Span, attributes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Attribute hook adding canonical keys for ``ai.*`` keys written after start.

    The canonical keys travel with the write, so hooks wrapped underneath this
    one (redaction) see them too.
    """
    merged = dict(span.attributes or {})
    merged.update(attributes)
    mapped = map_attributes(merged)
    if not mapped:
        return attributes
    return {**attributes, **mapped}


class GenAISpanProcessor(SpanProcessor):
    """
    Span processor normalizing AI SDK spans to the GenAI conventions.

    Usage:
        Add it to the tracer provider next to ``PaidSpanProcessor`` (both are
        registered by ``initialize_tracing()``):

        >>> provider.add_span_processor(GenAISpanProcessor())
    """

    PROMPT_ATTRIBUTE_SUBSTRINGS = AI_SDK_PROMPT_ATTRIBUTE_SUBSTRINGS

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        attributes = span.attributes or {}
        if not is_ai_sdk_span(span.name, attributes):
            return

        ctx = get_context()

        # Redaction wraps normalization, so dropped keys are never mapped.
        install_attribute_hook(span, normalize_written_attributes)
        if not ctx.store_prompt:
            install_redaction(span, self.PROMPT_ATTRIBUTE_SUBSTRINGS)
        attributes = dict(span.attributes or {})

        operation_name = attributes.get(GenAIAttributes.OPERATION_NAME) or determine_operation_name(span.name)
        mapped = map_attributes(attributes)
        if GenAIAttributes.OPERATION_NAME not in attributes:
            mapped[GenAIAttributes.OPERATION_NAME] = operation_name
        if OPENINFERENCE_SPAN_KIND not in attributes:
            mapped[OPENINFERENCE_SPAN_KIND] = determine_span_kind(operation_name)

        if mapped:
            span.set_attributes(mapped)

        if not ctx.has_identity:
            logger.debug(f"No tracing context for AI SDK span '{span.name}', skipping attribution")
            return

        if ctx.external_customer_id:
            span.set_attribute(PaidAttributes.EXTERNAL_CUSTOMER_ID, ctx.external_customer_id)
        if ctx.external_product_id:
            span.set_attribute(PaidAttributes.EXTERNAL_AGENT_ID, ctx.external_product_id)

        span.set_attribute(
            PaidAttributes.EVENT_NAME,
            EventName.EMBEDDING if operation_name == OperationType.EMBEDDINGS else EventName.LLM,
        )

        renamed = signal_name(span.name)
        if renamed != span.name:
            span.update_name(renamed)

    def on_end(self, span: ReadableSpan) -> None:
        return

    def shutdown(self) -> None:
        return

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True
