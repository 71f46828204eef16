"""
Write-time attribute interception for SDK spans.

Hooks wrap a span instance's ``set_attributes`` with ``wrapt`` function
wrappers, so every write made after span start passes through them before it
reaches the SDK attribute store. ``set_attribute`` is routed through the
outermost ``set_attributes``. Hooks compose: each one wraps whatever
``set_attributes`` the span has, so filters installed by different processors
all apply, outermost first.
"""

import logging
from collections.abc import MutableMapping
from typing import Any, Callable, Dict, Iterable, Optional

import wrapt
from opentelemetry.sdk.trace import Span

logger = logging.getLogger(__name__)

# (span, attributes) -> attributes passed on to the wrapped set_attributes
AttributeHook = Callable[[Span, Dict[str, Any]], Dict[str, Any]]

_ROUTED_MARKER = "_self_paid_routed"


def _route_set_attribute(span: Span) -> None:
    if getattr(span.set_attribute, _ROUTED_MARKER, False) is True:
        return

    def set_attribute_wrapper(wrapped, instance, args, kwargs):
        key, value = _bind_set_attribute(*args, **kwargs)
        span.set_attributes({key: value})

    routed = wrapt.FunctionWrapper(span.set_attribute, set_attribute_wrapper)
    setattr(routed, _ROUTED_MARKER, True)
    span.set_attribute = routed


def _bind_set_attribute(key: str, value: Any):
    return key, value


def _bind_set_attributes(attributes: Optional[Dict[str, Any]] = None):
    return attributes


def install_attribute_hook(span: Span, hook: AttributeHook) -> bool:
    """
    Pass every later attribute write on ``span`` through ``hook``.

    Returns:
        False for spans that are not SDK spans (nothing to intercept)
    """
    if not isinstance(span, Span):
        logger.debug(f"Span {type(span).__name__} is not an SDK span, attribute hook skipped")
        return False

    def set_attributes_wrapper(wrapped, instance, args, kwargs):
        attributes = _bind_set_attributes(*args, **kwargs)
        if not attributes:
            return wrapped(*args, **kwargs)
        return wrapped(hook(span, dict(attributes)))

    span.set_attributes = wrapt.FunctionWrapper(span.set_attributes, set_attributes_wrapper)
    _route_set_attribute(span)
    return True


def purge_attributes(span: Span, predicate: Callable[[str], bool]) -> None:
    """Delete attributes already on ``span`` whose key matches ``predicate``."""
    store = getattr(span, "_attributes", None)
    if not isinstance(store, MutableMapping):
        return
    for key in [key for key in store if predicate(key)]:
        del store[key]


def is_redacted(key: str, substrings: Iterable[str]) -> bool:
    return any(substring in key for substring in substrings)


def install_redaction(span: Span, substrings: Iterable[str]) -> bool:
    """Filter prompt-bearing keys out of ``span`` for the rest of its life."""
    substrings = tuple(substrings)

    def redact(span: Span, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in attributes.items() if not is_redacted(key, substrings)}

    if not install_attribute_hook(span, redact):
        return False
    purge_attributes(span, lambda key: is_redacted(key, substrings))
    return True
