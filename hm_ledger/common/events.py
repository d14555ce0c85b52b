# hm_ledger/common/events.py
from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List

import structlog
from django.db import transaction

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)

log = structlog.get_logger(__name__)


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("billing.payment_applied")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        if fn not in _registry[event_name]:
            _registry[event_name].append(fn)
        return fn
    return _decorator


def unsubscribe(event_name: str, fn: Handler) -> None:
    handlers = _registry.get(event_name, [])
    if fn in handlers:
        handlers.remove(fn)


def publish(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish an event to in-process subscribers.
    Keep payloads ID-based to avoid cross-app imports.

    Delivery is fire-and-forget: a failing subscriber is logged and the
    remaining subscribers still run.
    """
    for handler in list(_registry.get(event_name, [])):
        try:
            handler(payload)
        except Exception:
            log.exception("event_subscriber_failed", event_name=event_name, handler=getattr(handler, "__name__", repr(handler)))


def publish_on_commit(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Defer publishing until the surrounding transaction commits, so
    subscribers never observe state that is later rolled back.
    Outside a transaction the callback runs immediately.

    NOTE: pytest-django wraps tests in a transaction that is rolled back;
    use the django_capture_on_commit_callbacks fixture to observe events.
    """
    transaction.on_commit(lambda: publish(event_name, payload), robust=True)
