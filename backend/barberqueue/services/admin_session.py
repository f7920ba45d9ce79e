"""
Admin notification session.

Whether the shop's admin device wants staff alerts (new customer joined,
customer now serving). One instance is owned by the application and
handed to whoever needs it.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

SessionListener = Callable[[bool], None]


class AdminSession:
    """Holds the enabled flag and broadcasts changes to listeners."""

    def __init__(self, enabled: bool = False):
        self._enabled = enabled
        self._listeners: list[SessionListener] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        logger.info("Admin notifications %s", "enabled" if enabled else "disabled")
        for listener in list(self._listeners):
            listener(enabled)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener; it is called right away with the current value.

        Returns an unsubscribe function that can be called more than once.
        """
        self._listeners.append(listener)
        listener(self._enabled)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
