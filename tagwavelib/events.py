"""Notifications published by :class:`~tagwavelib.controller.SessionController`.

Views, the Qt poll loop and the CLI follow a session by subscribing to the
event names below instead of polling the controller.  Keyword data passed
to the handlers:

    STATE_CHANGED         state=SessionState, after every effective action
    TIME_UPDATE           time=float, once per playing tick
    PLAYBACK_ENDED        no data, the track ran out on its own
    ENVELOPE_INVALIDATED  width=int, the cached envelope must be rebuilt
"""

from __future__ import annotations

from typing import Any, Callable

STATE_CHANGED = "state_changed"
TIME_UPDATE = "time_update"
PLAYBACK_ENDED = "playback_ended"
ENVELOPE_INVALIDATED = "envelope_invalidated"

Handler = Callable[..., Any]


class EventBus:
    """Publish/subscribe hub for one session.

    The session runs on a single thread (the Qt or CLI loop), so there is no
    locking.  Handlers run in subscription order; a handler may unsubscribe
    itself, or others, while an event is being delivered, and that only
    affects later emits.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, event_type: str, handler: Handler) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        """Drop *handler*; unknown handlers are ignored."""
        handlers = self._subscribers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def has_subscribers(self, event_type: str) -> bool:
        """True when an emit of *event_type* would reach anyone.

        Lets the controller skip per-tick notifications nobody listens to.
        """
        return bool(self._subscribers.get(event_type))

    def emit(self, event_type: str, **data: Any) -> None:
        handlers = tuple(self._subscribers.get(event_type, ()))
        for handler in handlers:
            handler(**data)
