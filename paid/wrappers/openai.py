"""
OpenAI SDK wrapper for billing attribution.

Wraps an OpenAI client so chat completions, embeddings, image generation and
responses calls made inside ``trace()`` create attributed GenAI spans.
"""

import logging
from typing import Any, Callable, Dict, TYPE_CHECKING

from opentelemetry.trace import Span

from ..tracing.attributes import GenAIAttributes, OperationType
from ..tracing.context import get_context
from ._common import get_path, patch_method, require_tracer, traced

if TYPE_CHECKING:
    import openai

logger = logging.getLogger(__name__)

PROVIDER = "openai"
DEFAULT_IMAGE_MODEL = "dall-e-3"


def _base_attributes(operation: str) -> Dict[str, Any]:
    return {
        GenAIAttributes.SYSTEM: PROVIDER,
        GenAIAttributes.PROVIDER_NAME: PROVIDER,
        GenAIAttributes.OPERATION_NAME: operation,
    }


def _record_chat(span: Span, response: Any) -> None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return
    span.set_attribute(GenAIAttributes.USAGE_INPUT_TOKENS, usage.prompt_tokens)
    span.set_attribute(GenAIAttributes.USAGE_OUTPUT_TOKENS, usage.completion_tokens)
    span.set_attribute(GenAIAttributes.RESPONSE_MODEL, response.model)

    cached = getattr(getattr(usage, "prompt_tokens_details", None), "cached_tokens", None)
    if cached:
        span.set_attribute(GenAIAttributes.USAGE_CACHED_INPUT_TOKENS, cached)
    reasoning = getattr(getattr(usage, "completion_tokens_details", None), "reasoning_tokens", None)
    if reasoning:
        span.set_attribute(GenAIAttributes.USAGE_REASONING_OUTPUT_TOKENS, reasoning)


def _record_embeddings(span: Span, response: Any) -> None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return
    span.set_attribute(GenAIAttributes.USAGE_INPUT_TOKENS, usage.prompt_tokens)
    span.set_attribute(GenAIAttributes.RESPONSE_MODEL, response.model)


def _record_responses(span: Span, response: Any) -> None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return
    span.set_attribute(GenAIAttributes.USAGE_INPUT_TOKENS, usage.input_tokens)
    span.set_attribute(GenAIAttributes.USAGE_OUTPUT_TOKENS, usage.output_tokens)
    span.set_attribute(GenAIAttributes.RESPONSE_MODEL, response.model)

    cached = getattr(getattr(usage, "input_tokens_details", None), "cached_tokens", None)
    if cached:
        span.set_attribute(GenAIAttributes.USAGE_CACHED_INPUT_TOKENS, cached)
    reasoning = getattr(getattr(usage, "output_tokens_details", None), "reasoning_tokens", None)
    if reasoning:
        span.set_attribute(GenAIAttributes.USAGE_REASONING_OUTPUT_TOKENS, reasoning)


def _make_wrapper(build: Callable[[dict], tuple]):
    """
    Build a wrapt wrapper from ``build(kwargs) -> (span_name, attributes, recorder)``.

    Calls made outside a tracing context pass through untraced.
    """

    def wrapper(wrapped, instance, args, kwargs):
        tracer = require_tracer()
        if not get_context().has_identity:
            logger.warning("No active tracing context found, calling OpenAI directly without tracing.")
            return wrapped(*args, **kwargs)

        span_name, attributes, recorder = build(kwargs)
        return traced(wrapped, tracer, span_name, attributes, args, kwargs, recorder)

    return wrapper


def _chat(kwargs: dict) -> tuple:
    model = kwargs.get("model", "unknown")
    attributes = _base_attributes(OperationType.CHAT)
    attributes[GenAIAttributes.REQUEST_MODEL] = model
    return f"{OperationType.CHAT} {model}", attributes, _record_chat


def _embeddings(kwargs: dict) -> tuple:
    model = kwargs.get("model") or "unknown"
    attributes = _base_attributes(OperationType.EMBEDDINGS)
    attributes[GenAIAttributes.REQUEST_MODEL] = model
    return f"{OperationType.EMBEDDINGS} {model}", attributes, _record_embeddings


def _images(kwargs: dict) -> tuple:
    model = kwargs.get("model") or DEFAULT_IMAGE_MODEL
    attributes = _base_attributes(OperationType.IMAGE_GENERATION)
    attributes.update({
        GenAIAttributes.REQUEST_MODEL: model,
        GenAIAttributes.IMAGE_COUNT: kwargs.get("n") or 1,
        GenAIAttributes.IMAGE_SIZE: kwargs.get("size") or "1024x1024",
        GenAIAttributes.IMAGE_QUALITY: kwargs.get("quality") or "standard",
    })
    return f"images {model}", attributes, None


def _responses(kwargs: dict) -> tuple:
    # The responses API is billed like chat completions.
    attributes = _base_attributes(OperationType.CHAT)
    if kwargs.get("model"):
        attributes[GenAIAttributes.REQUEST_MODEL] = kwargs["model"]
    return "openai.responses", attributes, _record_responses


_METHODS = (
    ("chat.completions", "create", _chat),
    ("embeddings", "create", _embeddings),
    ("images", "generate", _images),
    ("responses", "create", _responses),
)


def wrap_openai(client: "openai.OpenAI") -> "openai.OpenAI":
    """
    Wrap an OpenAI client (sync or async) for billing attribution.

    Patches ``chat.completions.create``, ``embeddings.create``,
    ``images.generate`` and ``responses.create`` on the client instance.
    Wrapping the same client twice has no further effect.

    Args:
        client: ``openai.OpenAI`` or ``openai.AsyncOpenAI`` instance

    Returns:
        The same client instance with instrumented methods

    Example:
        >>> from openai import OpenAI
        >>> from paid import initialize_tracing, trace
        >>> from paid.wrappers import wrap_openai
        >>>
        >>> initialize_tracing()
        >>> client = wrap_openai(OpenAI())
        >>> trace("cust_123", lambda: client.chat.completions.create(
        ...     model="gpt-4o-mini",
        ...     messages=[{"role": "user", "content": "Hello"}],
        ... ))
    """
    for path, method, build in _METHODS:
        if not patch_method(get_path(client, path), method, _make_wrapper(build)):
            logger.debug(f"OpenAI client has no {path}.{method}, skipping")
    return client
