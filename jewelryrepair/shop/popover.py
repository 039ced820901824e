"""Open/close state and click-outside dismissal for pickers and modals."""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Subscription:
    """Handle returned by :meth:`InteractionBus.subscribe`."""

    def __init__(self, bus: "InteractionBus", listener: Listener) -> None:
        self._bus = bus
        self._listener = listener
        self.active = True

    def release(self) -> None:
        if self.active:
            self._bus._listeners.remove(self._listener)
            self.active = False


class InteractionBus:
    """Fans pointer interactions out to every open popover.

    ``dispatch`` receives the component the interaction landed in (or ``None``
    for the page background). Each subscribed popover decides for itself
    whether that counts as outside.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def dispatch(self, target: Any = None) -> None:
        # listeners unsubscribe themselves while closing
        for listener in list(self._listeners):
            listener(target)

    def dismiss_all(self) -> None:
        """Close every open popover, e.g. when the screen changes."""

        self.dispatch(None)

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)


class Popover:
    """Base for components that close when the user interacts elsewhere."""

    def __init__(self, bus: InteractionBus | None = None) -> None:
        self.bus = bus
        self.is_open = False
        self._subscription: Subscription | None = None

    def open(self) -> None:
        if self.is_open:
            return
        self.is_open = True
        if self.bus is not None:
            self._subscription = self.bus.subscribe(self._on_interaction)

    def close(self) -> None:
        self.is_open = False
        if self._subscription is not None:
            self._subscription.release()
            self._subscription = None

    def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            self.open()

    def contains(self, target: Any) -> bool:
        return target is self

    def _on_interaction(self, target: Any) -> None:
        if not self.contains(target):
            logger.debug("Dismissing %s after outside interaction", type(self).__name__)
            self.close()
