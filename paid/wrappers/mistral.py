"""
Mistral SDK wrapper for billing attribution.

Wraps a Mistral client so OCR calls create attributed spans carrying the
number of pages processed.
"""

from typing import Any, TYPE_CHECKING

from opentelemetry.trace import Span

from ..tracing.attributes import GenAIAttributes, OperationType
from ._common import patch_method, require_attribution, traced

if TYPE_CHECKING:
    import mistralai

PROVIDER = "mistral"
SPAN_NAME = "mistral.ocr"

_ANNOTATION_FORMATS = ("bbox_annotation_format", "document_annotation_format")


def _record_ocr(span: Span, response: Any) -> None:
    pages_processed = getattr(getattr(response, "usage_info", None), "pages_processed", None)
    if pages_processed is not None:
        span.set_attribute(GenAIAttributes.OCR_PAGES_PROCESSED, pages_processed)

    model = getattr(response, "model", None)
    if model:
        span.set_attribute(GenAIAttributes.RESPONSE_MODEL, model)


def _ocr_wrapper(wrapped, instance, args, kwargs):
    tracer = require_attribution()

    attributes = {
        GenAIAttributes.SYSTEM: PROVIDER,
        GenAIAttributes.PROVIDER_NAME: PROVIDER,
        GenAIAttributes.OPERATION_NAME: OperationType.OCR,
    }
    if any(kwargs.get(key) for key in _ANNOTATION_FORMATS):
        attributes[GenAIAttributes.OCR_ANNOTATED] = True
    if kwargs.get("model"):
        attributes[GenAIAttributes.REQUEST_MODEL] = kwargs["model"]

    return traced(wrapped, tracer, SPAN_NAME, attributes, args, kwargs, _record_ocr)


def wrap_mistral(client: "mistralai.Mistral") -> "mistralai.Mistral":
    """
    Wrap a Mistral client for billing attribution of OCR calls.

    Patches ``ocr.process`` and ``ocr.process_async``; both must be called
    inside ``trace()``.

    Args:
        client: ``mistralai.Mistral`` instance

    Returns:
        The same client instance with OCR methods instrumented

    Example:
        >>> from mistralai import Mistral
        >>> client = wrap_mistral(Mistral(api_key="..."))
        >>> trace("cust_123", lambda: client.ocr.process(
        ...     model="mistral-ocr-latest",
        ...     document={"type": "document_url", "document_url": "https://..."},
        ... ))
    """
    ocr = getattr(client, "ocr", None)
    patch_method(ocr, "process", _ocr_wrapper)
    patch_method(ocr, "process_async", _ocr_wrapper)
    return client
