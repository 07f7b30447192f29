from __future__ import annotations

import logging
from typing import Any, Callable, List

from nearme.models.schemas import SearchState

logger = logging.getLogger(__name__)

Listener = Callable[[SearchState], None]


class StateStore:
    """Holds the current SearchState and publishes every replacement to subscribers."""

    def __init__(self, initial: SearchState | None = None) -> None:
        self._state = initial or SearchState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SearchState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes: Any) -> SearchState:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener %r failed", listener)
        return self._state
