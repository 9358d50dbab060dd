"""Re-emit :class:`~mentionkit.events.EventBus` events on the GUI thread."""

from __future__ import annotations

from PySide6.QtCore import QObject, Qt, Signal

from ..events import Event, EventBus


class EventRelay(QObject):
    """Forwards bus events as ``delivered`` signals in this object's thread.

    Provider callbacks may publish from worker threads; widgets connected to
    ``delivered`` are only ever called on the thread the relay lives in.
    """

    delivered = Signal(object)
    _posted = Signal(object)

    def __init__(self, bus: EventBus, *event_types: type[Event], parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._posted.connect(self.delivered, Qt.ConnectionType.QueuedConnection)
        # closures are held strongly by the bus, keeping the relay alive until detach
        self._unsubscribe = [bus.subscribe(event_type, lambda event: self._forward(event)) for event_type in event_types]

    def detach(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def _forward(self, event: Event) -> None:
        self._posted.emit(event)


__all__ = ["EventRelay"]
