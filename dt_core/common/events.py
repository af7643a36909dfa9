# backend/dt_core/common/events.py
from collections import defaultdict
from typing import Any, Callable, Dict, List

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)

DRUG_TEST_CLASSIFIED = "drug_test.classified"
DRUG_TEST_MATCHED = "drug_test.matched"
CONFIRMATION_COMPLETED = "drug_test.confirmation_completed"


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("drug_test.classified")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        _registry[event_name].append(fn)
        return fn
    return _decorator


def unsubscribe(event_name: str, fn: Handler) -> None:
    handlers = _registry.get(event_name, [])
    if fn in handlers:
        handlers.remove(fn)


def publish(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish an event to in-process subscribers (email, admin alerts).
    Keep payloads ID/label-based; no client names.
    """
    for handler in list(_registry.get(event_name, [])):
        handler(payload)
