"""
Discrete billable events ("signals").

A signal is a zero-duration span carrying the ambient attribution plus an
``event_name``. With cost tracing enabled, the collector associates it with
the cost traces of the same ``trace()`` scope.
"""

import dataclasses
import json
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from ..exceptions import ConfigurationError, InvalidArgument, PreconditionFailed
from .attributes import PaidAttributes
from .context import get_context
from .tracing import get_paid_tracer, get_token

logger = logging.getLogger(__name__)

SIGNAL_SPAN_NAME = "signal"
COST_TRACING_MARKER_KEY = "paid"


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _with_cost_tracing_marker(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(data or {})
    existing = merged.get(COST_TRACING_MARKER_KEY)
    marker = dict(existing) if isinstance(existing, dict) else {}
    marker["enable_cost_tracing"] = True
    merged[COST_TRACING_MARKER_KEY] = marker
    return merged


def signal(
    event_name: str,
    enable_cost_tracing: bool = False,
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Emit a billable event bound to the current tracing context.

    Must be called inside ``trace()`` / ``run_with_context()`` with both a
    customer and a product id. Make at most one call with
    ``enable_cost_tracing=True`` per traced scope, otherwise several signals
    refer to the same costs.

    Args:
        event_name: Name of the event
        enable_cost_tracing: Associate the signal with cost traces of the
            current scope
        data: Optional JSON-serializable payload (not mutated)

    Raises:
        InvalidArgument: Empty event name or unserializable data
        ConfigurationError: Tracing is not initialized
        PreconditionFailed: Customer id, product id or token missing

    Example:
        >>> trace("cust_1", lambda: signal("report_generated", True, {"pages": 3}),
        ...       external_product_id="agent_1")
    """
    if not event_name:
        raise InvalidArgument("event_name must be a non-empty string")

    tracer = get_paid_tracer()
    token = get_token()
    if tracer is None:
        raise ConfigurationError(
            "Tracing is not initialized. Make sure you called initialize_tracing()"
        )

    ctx = get_context()
    missing = [
        field
        for field, value in (
            ("external_customer_id", ctx.external_customer_id),
            ("external_product_id", ctx.external_product_id),
            ("token", token),
        )
        if not value
    ]
    if missing:
        raise PreconditionFailed(
            f"Missing {', '.join(missing)}. Make sure to call signal() within trace()",
            missing=missing,
        )

    span = tracer.start_span(SIGNAL_SPAN_NAME)
    try:
        attributes: Dict[str, Any] = {
            PaidAttributes.EXTERNAL_CUSTOMER_ID: ctx.external_customer_id,
            PaidAttributes.EXTERNAL_AGENT_ID: ctx.external_product_id,
            PaidAttributes.EVENT_NAME: event_name,
            PaidAttributes.TOKEN: token,
        }

        payload = data
        if enable_cost_tracing:
            attributes[PaidAttributes.ENABLE_COST_TRACING] = True
            payload = _with_cost_tracing_marker(data)

        if payload:
            try:
                attributes[PaidAttributes.DATA] = json.dumps(payload, default=_json_default)
            except (TypeError, ValueError) as e:
                raise InvalidArgument(f"Signal data is not JSON serializable: {e}") from e

        span.set_attributes(attributes)
        span.set_status(Status(StatusCode.OK))
        logger.debug(f"Signal '{event_name}' emitted")
    except Exception as e:
        span.set_status(Status(StatusCode.ERROR, str(e)))
        span.record_exception(e)
        raise
    finally:
        span.end()
