"""
LangChain callback handler for billing attribution.

Creates one attributed span per LLM run, keyed by LangChain's run id, so
any chat model or LLM driven through LangChain is billed to the customer of
the surrounding ``trace()`` call.
"""

import logging
import threading
from typing import Any, Dict, List, Optional
from uuid import UUID

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.outputs import LLMResult
from opentelemetry.trace import Span, Status, StatusCode

from ..tracing.attributes import GenAIAttributes
from ._common import mark_failed, require_attribution, require_tracer

logger = logging.getLogger(__name__)

_KNOWN_PROVIDERS = ("openai", "anthropic", "mistral", "cohere", "huggingface", "azure")

# (LangChain usage key, canonical key) for the camelCase and snake_case layouts
_USAGE_KEYS = {
    "tokenUsage": (
        ("promptTokens", GenAIAttributes.USAGE_INPUT_TOKENS),
        ("completionTokens", GenAIAttributes.USAGE_OUTPUT_TOKENS),
        ("cachedInputTokens", GenAIAttributes.USAGE_CACHED_INPUT_TOKENS),
        ("reasoningOutputTokens", GenAIAttributes.USAGE_REASONING_OUTPUT_TOKENS),
    ),
    "token_usage": (
        ("prompt_tokens", GenAIAttributes.USAGE_INPUT_TOKENS),
        ("completion_tokens", GenAIAttributes.USAGE_OUTPUT_TOKENS),
        ("cached_input_tokens", GenAIAttributes.USAGE_CACHED_INPUT_TOKENS),
        ("reasoning_output_tokens", GenAIAttributes.USAGE_REASONING_OUTPUT_TOKENS),
    ),
}


def extract_provider(serialized: Optional[Dict[str, Any]]) -> str:
    """Guess the model provider from a serialized LangChain object id."""
    if not serialized or not serialized.get("id"):
        return "unknown"

    id_str = " ".join(str(part) for part in serialized["id"]).lower()
    for provider in _KNOWN_PROVIDERS:
        if provider in id_str:
            return provider
    return "unknown"


def _usage_attributes(llm_output: Dict[str, Any]) -> Dict[str, Any]:
    attributes: Dict[str, Any] = {}
    for usage_key, fields in _USAGE_KEYS.items():
        usage = llm_output.get(usage_key)
        if not isinstance(usage, dict):
            continue
        for source, canonical in fields:
            if usage.get(source) is not None:
                attributes[canonical] = usage[source]
    return attributes


def _message_usage_attributes(response: LLMResult) -> Dict[str, Any]:
    # Chat models report usage on the message when llm_output carries none.
    input_tokens = output_tokens = 0
    found = False
    for generations in response.generations:
        for generation in generations:
            usage = getattr(getattr(generation, "message", None), "usage_metadata", None)
            if usage:
                found = True
                input_tokens += usage.get("input_tokens", 0)
                output_tokens += usage.get("output_tokens", 0)
    if not found:
        return {}
    return {
        GenAIAttributes.USAGE_INPUT_TOKENS: input_tokens,
        GenAIAttributes.USAGE_OUTPUT_TOKENS: output_tokens,
    }


def _response_model(response: LLMResult) -> Optional[str]:
    llm_output = response.llm_output or {}
    model = llm_output.get("modelName") or llm_output.get("model_name")
    if model:
        return model
    try:
        metadata = response.generations[0][0].message.response_metadata
    except (AttributeError, IndexError):
        return None
    return metadata.get("model_name")


class PaidLangChainCallback(BaseCallbackHandler):
    """
    LangChain callback creating one attributed span per LLM run.

    Usage:
        >>> handler = PaidLangChainCallback()
        >>> trace("cust_123", lambda: llm.invoke("Hello", config={"callbacks": [handler]}))
    """

    # Surface PreconditionFailed instead of letting LangChain log and ignore it.
    raise_error = True

    def __init__(self):
        super().__init__()
        self._tracer = require_tracer()
        self._spans: Dict[UUID, Span] = {}
        self._lock = threading.Lock()

    def _start_span(
        self,
        serialized: Dict[str, Any],
        run_id: UUID,
        metadata: Optional[Dict[str, Any]],
    ) -> None:
        require_attribution()

        metadata = metadata or {}
        model_type = metadata.get("ls_model_type") or "unknown"
        model_name = metadata.get("ls_model_name") or "unknown"

        span = self._tracer.start_span(
            f"langchain.{model_type}",
            attributes={
                GenAIAttributes.SYSTEM: extract_provider(serialized),
                GenAIAttributes.OPERATION_NAME: model_type,
                GenAIAttributes.REQUEST_MODEL: model_name,
            },
        )
        with self._lock:
            self._spans[run_id] = span

    def _pop_span(self, run_id: UUID) -> Optional[Span]:
        with self._lock:
            return self._spans.pop(run_id, None)

    def on_llm_start(
        self,
        serialized: Dict[str, Any],
        prompts: List[str],
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        self._start_span(serialized, run_id, metadata)

    def on_chat_model_start(
        self,
        serialized: Dict[str, Any],
        messages: List[List[Any]],
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        self._start_span(serialized, run_id, metadata)

    def on_llm_end(
        self,
        response: LLMResult,
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        **kwargs: Any,
    ) -> None:
        span = self._pop_span(run_id)
        if span is None:
            logger.debug(f"No span for LangChain run {run_id}")
            return

        try:
            attributes = _usage_attributes(response.llm_output or {})
            if not attributes:
                attributes = _message_usage_attributes(response)

            model = _response_model(response)
            if model:
                attributes[GenAIAttributes.RESPONSE_MODEL] = model

            span.set_attributes(attributes)
            span.set_status(Status(StatusCode.OK))
        finally:
            span.end()

    def on_llm_error(
        self,
        error: BaseException,
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        **kwargs: Any,
    ) -> None:
        span = self._pop_span(run_id)
        if span is None:
            return

        try:
            mark_failed(span, error)
        finally:
            span.end()
