"""
Attribution span processor.

Tags every span started inside a tracing context with the customer/product
identity and the API token, prefixes its name for the Paid collector, and
keeps prompt/response content off the span unless the context opts in.
"""

import logging
from typing import Optional

from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span, SpanProcessor

from .attributes import PROMPT_ATTRIBUTE_SUBSTRINGS, SPAN_NAME_PREFIX, PaidAttributes
from .context import get_context
from .redaction import install_redaction

logger = logging.getLogger(__name__)


def with_prefix(name: str) -> str:
    """Prefix ``name`` with the attribution prefix, at most once."""
    if not name or name.startswith(SPAN_NAME_PREFIX):
        return name
    return f"{SPAN_NAME_PREFIX}{name}"


class PaidSpanProcessor(SpanProcessor):
    """
    Span processor adding Paid attribution on span start.

    Filtering happens when attributes are written: the exported span is built
    from the same attribute store, and nothing done in ``on_end`` reaches
    processors that already ran.
    """

    PROMPT_ATTRIBUTE_SUBSTRINGS = PROMPT_ATTRIBUTE_SUBSTRINGS

    def __init__(self, token_provider=None):
        """
        Args:
            token_provider: Zero-argument callable returning the API token.
                Defaults to the token of the initialized tracer pipeline.
        """
        if token_provider is None:
            from .tracing import get_token as token_provider
        self._token_provider = token_provider

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        ctx = get_context()

        if not ctx.store_prompt:
            install_redaction(span, self.PROMPT_ATTRIBUTE_SUBSTRINGS)

        name = span.name
        prefixed = with_prefix(name)
        if prefixed != name:
            span.update_name(prefixed)

        if ctx.external_customer_id:
            span.set_attribute(PaidAttributes.EXTERNAL_CUSTOMER_ID, ctx.external_customer_id)
        if ctx.external_product_id:
            span.set_attribute(PaidAttributes.EXTERNAL_AGENT_ID, ctx.external_product_id)

        token = self._token_provider()
        if token:
            span.set_attribute(PaidAttributes.TOKEN, token)

    def on_end(self, span: ReadableSpan) -> None:
        # Attributes were filtered as they were written.
        return

    def shutdown(self) -> None:
        return

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True
