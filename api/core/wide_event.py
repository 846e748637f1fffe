"""Request-scoped wide event for canonical log lines.

One dict per request accumulates context (user id, streak values, tip source)
while the request runs. RequestContextMiddleware initializes it at request
start and emits it as a single ``request.completed`` log line at the end.

Usage:
    from core import set_wide_event_fields

    set_wide_event_fields(user_id=user_id, current_streak=stats.current_streak)
    set_wide_event_nested("payment", amount="0.01", success=True)
"""

from contextvars import ContextVar
from typing import Any

_wide_event: ContextVar[dict[str, Any]] = ContextVar("wide_event")


def init_wide_event() -> dict[str, Any]:
    """Start a fresh wide event for the current async context."""
    event: dict[str, Any] = {}
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    """Returns an empty dict outside a request."""
    try:
        return _wide_event.get()
    except LookupError:
        return {}


def set_wide_event_field(key: str, value: Any) -> None:
    set_wide_event_fields(**{key: value})


def set_wide_event_fields(**kwargs: Any) -> None:
    """Merge fields into the current wide event.

    Outside a request (CLI, tests without the middleware) the event has not
    been initialized and the call is a no-op.
    """
    try:
        event = _wide_event.get()
    except LookupError:
        return
    event.update(kwargs)


def set_wide_event_nested(category: str, **kwargs: Any) -> None:
    """Set fields under a nested category, e.g. ``{"payment": {...}}``."""
    try:
        event = _wide_event.get()
    except LookupError:
        return
    event.setdefault(category, {}).update(kwargs)


def clear_wide_event() -> None:
    _wide_event.set({})
