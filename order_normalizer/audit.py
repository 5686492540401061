"""Structured audit logging for the order normalizer.

Rules:
- Never log customer notes, names or addresses
- Log identifiers and resolved decisions only
- Structured JSON format
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger("order_normalizer.audit")


def _emit(event: str, level: int = logging.INFO, **kwargs) -> None:
    """Emit a structured audit log entry."""
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "order-normalizer",
        "event": event,
        **kwargs,
    }
    logger.log(level, json.dumps(entry, default=str))


def log_normalization_started(order_id: str, trace_id: str) -> None:
    _emit("normalization_started", order_id=order_id, trace_id=trace_id)


def log_normalization_completed(
    order_id: str,
    trace_id: str,
    method: str,
    method_source: str,
    has_delivery_fee: bool,
    has_tip: bool,
    warning_count: int,
    duration_ms: float,
) -> None:
    _emit(
        "normalization_completed",
        order_id=order_id,
        trace_id=trace_id,
        method=method,
        method_source=method_source,
        has_delivery_fee=has_delivery_fee,
        has_tip=has_tip,
        warning_count=warning_count,
        duration_ms=round(duration_ms, 2),
    )


def log_step_failed(order_id: str, step: str, error: BaseException) -> None:
    _emit(
        "step_failed",
        level=logging.WARNING,
        order_id=order_id,
        step=step,
        error_type=type(error).__name__,
    )
