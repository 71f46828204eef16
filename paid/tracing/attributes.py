"""
Span attribute constants used across the Paid tracing pipeline.

Canonical keys follow the OpenTelemetry GenAI semantic conventions.
See https://opentelemetry.io/docs/specs/semconv/gen-ai/gen-ai-spans/
"""

SPAN_NAME_PREFIX = "paid.trace."
SIGNAL_SPAN_SUFFIX = ".signal"


class PaidAttributes:
    """Attribution attributes read by the Paid collector."""

    EXTERNAL_CUSTOMER_ID = "external_customer_id"
    EXTERNAL_AGENT_ID = "external_agent_id"  # carries the external product id
    TOKEN = "token"
    EVENT_NAME = "event_name"
    ENABLE_COST_TRACING = "enable_cost_tracing"
    DATA = "data"


class GenAIAttributes:
    """OpenTelemetry GenAI semantic convention attributes (canonical schema)."""

    # ========== Operation ==========
    OPERATION_NAME = "gen_ai.operation.name"
    PROVIDER_NAME = "gen_ai.provider.name"
    SYSTEM = "gen_ai.system"  # kept alongside provider.name for older consumers

    # ========== Request ==========
    REQUEST_MODEL = "gen_ai.request.model"
    REQUEST_TEMPERATURE = "gen_ai.request.temperature"
    REQUEST_MAX_TOKENS = "gen_ai.request.max_tokens"
    REQUEST_TOP_P = "gen_ai.request.top_p"
    REQUEST_FREQUENCY_PENALTY = "gen_ai.request.frequency_penalty"
    REQUEST_PRESENCE_PENALTY = "gen_ai.request.presence_penalty"

    # ========== Response ==========
    RESPONSE_MODEL = "gen_ai.response.model"
    RESPONSE_ID = "gen_ai.response.id"
    RESPONSE_FINISH_REASONS = "gen_ai.response.finish_reasons"

    # ========== Usage ==========
    USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
    USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"
    USAGE_TOTAL_TOKENS = "gen_ai.usage.total_tokens"
    USAGE_CACHED_INPUT_TOKENS = "gen_ai.usage.cached_input_tokens"
    USAGE_REASONING_OUTPUT_TOKENS = "gen_ai.usage.reasoning_output_tokens"
    USAGE_CACHE_CREATION_INPUT_TOKENS = "gen_ai.usage.cache_creation_input_tokens"
    USAGE_CACHE_READ_INPUT_TOKENS = "gen_ai.usage.cache_read_input_tokens"

    # ========== Content ==========
    PROMPT = "gen_ai.prompt"
    COMPLETION = "gen_ai.completion"

    # ========== Images / OCR ==========
    IMAGE_COUNT = "gen_ai.image.count"
    IMAGE_SIZE = "gen_ai.image.size"
    IMAGE_QUALITY = "gen_ai.image.quality"
    OCR_ANNOTATED = "gen_ai.ocr.annotated"
    OCR_PAGES_PROCESSED = "gen_ai.ocr.pages_processed"


class AISDKAttributes:
    """Attributes emitted by generic multi-vendor AI SDK telemetry (``ai.*``)."""

    MODEL_ID = "ai.model.id"
    MODEL_PROVIDER = "ai.model.provider"

    USAGE_PROMPT_TOKENS = "ai.usage.promptTokens"
    USAGE_COMPLETION_TOKENS = "ai.usage.completionTokens"

    RESPONSE_MODEL = "ai.response.model"
    RESPONSE_ID = "ai.response.id"
    RESPONSE_FINISH_REASON = "ai.response.finishReason"

    SETTINGS_TEMPERATURE = "ai.settings.temperature"
    SETTINGS_MAX_TOKENS = "ai.settings.maxTokens"
    SETTINGS_TOP_P = "ai.settings.topP"
    SETTINGS_FREQUENCY_PENALTY = "ai.settings.frequencyPenalty"
    SETTINGS_PRESENCE_PENALTY = "ai.settings.presencePenalty"

    OPERATION_ID = "ai.operationId"
    OPERATION_NAME = "operation.name"

    PROMPT = "ai.prompt"
    RESPONSE_TEXT = "ai.response.text"


# OpenInference span kind (https://github.com/Arize-ai/openinference)
OPENINFERENCE_SPAN_KIND = "openinference.span.kind"


class OpenInferenceSpanKinds:
    LLM = "LLM"
    EMBEDDING = "EMBEDDING"
    TOOL = "TOOL"


class OperationType:
    """Values of ``gen_ai.operation.name``."""

    CHAT = "chat"
    EMBEDDINGS = "embeddings"
    EXECUTE_TOOL = "execute_tool"
    IMAGE_GENERATION = "image_generation"
    MESSAGES = "messages"
    OCR = "ocr"


class EventName:
    """Billing classification written to ``event_name`` on vendor spans."""

    LLM = "llm"
    EMBEDDING = "embedding"


# Keys that may carry prompt/response content, matched as substrings.
PROMPT_ATTRIBUTE_SUBSTRINGS = (
    "gen_ai.prompt",
    "gen_ai.completion",
    "gen_ai.request.messages",
    "gen_ai.response.messages",
    "gen_ai.input.messages",
    "gen_ai.output.messages",
    "gen_ai.system_instructions",
    "llm.input_message",
    "llm.output_message",
    "llm.prompts",
    "llm.prompt_template",
    "llm.invocation_parameters",
    "input.value",
    "output.value",
)

# AI SDK content keys, redacted on spans handled by the vendor normalizer.
AI_SDK_PROMPT_ATTRIBUTE_SUBSTRINGS = PROMPT_ATTRIBUTE_SUBSTRINGS + (
    "ai.prompt",
    "ai.response.text",
    "ai.response.object",
    "ai.toolCall.args",
    "ai.toolCall.result",
    "ai.values",
)
