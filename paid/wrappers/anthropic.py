"""
Anthropic SDK wrapper for billing attribution.

Wraps an Anthropic client so ``messages.create`` calls create attributed
GenAI spans, including prompt cache usage.
"""

from typing import Any, TYPE_CHECKING

from opentelemetry.trace import Span

from ..tracing.attributes import GenAIAttributes, OperationType
from ._common import patch_method, require_attribution, traced

if TYPE_CHECKING:
    import anthropic

PROVIDER = "anthropic"
SPAN_NAME = "anthropic.messages"


def _record_messages(span: Span, response: Any) -> None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return
    span.set_attribute(GenAIAttributes.USAGE_INPUT_TOKENS, usage.input_tokens)
    span.set_attribute(GenAIAttributes.USAGE_OUTPUT_TOKENS, usage.output_tokens)
    span.set_attribute(GenAIAttributes.RESPONSE_MODEL, response.model)

    # Prompt caching usage
    cache_creation = getattr(usage, "cache_creation_input_tokens", None)
    if cache_creation:
        span.set_attribute(GenAIAttributes.USAGE_CACHE_CREATION_INPUT_TOKENS, cache_creation)
    cache_read = getattr(usage, "cache_read_input_tokens", None)
    if cache_read:
        span.set_attribute(GenAIAttributes.USAGE_CACHE_READ_INPUT_TOKENS, cache_read)


def _messages_wrapper(wrapped, instance, args, kwargs):
    tracer = require_attribution()

    attributes = {
        GenAIAttributes.SYSTEM: PROVIDER,
        GenAIAttributes.PROVIDER_NAME: PROVIDER,
        GenAIAttributes.OPERATION_NAME: OperationType.MESSAGES,
    }
    if kwargs.get("model"):
        attributes[GenAIAttributes.REQUEST_MODEL] = kwargs["model"]

    return traced(wrapped, tracer, SPAN_NAME, attributes, args, kwargs, _record_messages)


def wrap_anthropic(client: "anthropic.Anthropic") -> "anthropic.Anthropic":
    """
    Wrap an Anthropic client (sync or async) for billing attribution.

    ``messages.create`` must then be called inside ``trace()``; outside it the
    call raises ``PreconditionFailed`` before reaching Anthropic.

    Args:
        client: ``anthropic.Anthropic`` or ``anthropic.AsyncAnthropic`` instance

    Returns:
        The same client instance with ``messages.create`` instrumented

    Example:
        >>> import anthropic
        >>> from paid.wrappers import wrap_anthropic
        >>>
        >>> client = wrap_anthropic(anthropic.Anthropic())
        >>> trace("cust_123", lambda: client.messages.create(
        ...     model="claude-3-5-sonnet-latest",
        ...     max_tokens=256,
        ...     messages=[{"role": "user", "content": "Hello"}],
        ... ))
    """
    patch_method(getattr(client, "messages", None), "create", _messages_wrapper)
    return client
