"""
Named event channel shared by the build and deploy phases.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Union

from .enums import EventType


@dataclass(frozen=True)
class Event:
    """A single emitted event"""
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.type.value

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]


Listener = Callable[[Event], None]


class EventEmitter:
    """
    Synchronous observer registry.

    Listeners run in registration order, inside emit(). A listener that raises
    is logged and skipped; emission order is never changed by a listener.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Listener]] = defaultdict(list)
        self._any_listeners: List[Listener] = []
        self.logger = logging.getLogger(__name__)

    def on(self, event_type: Union[EventType, str], listener: Listener) -> Listener:
        """
        Subscribe to one event type.

        Args:
            event_type: EventType or its dotted name
            listener: Callable receiving the Event

        Returns:
            The listener, so it can be used as a decorator
        """
        self._listeners[EventType(event_type)].append(listener)
        return listener

    def on_any(self, listener: Listener) -> Listener:
        """Subscribe to every event"""
        self._any_listeners.append(listener)
        return listener

    def off(self, event_type: Union[EventType, str], listener: Listener) -> None:
        listeners = self._listeners.get(EventType(event_type), [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event_type: EventType, **payload: Any) -> Event:
        event = Event(type=EventType(event_type), payload=payload)

        for listener in list(self._listeners.get(event.type, [])) + list(self._any_listeners):
            try:
                listener(event)
            except Exception as e:
                self.logger.error(
                    f"Listener for {event.name} failed: {e}", exc_info=True
                )

        return event


class EventRecorder:
    """Collects every event it sees; handy for headless runs"""

    def __init__(self, emitter: EventEmitter = None):
        self.events: List[Event] = []
        if emitter is not None:
            emitter.on_any(self)

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def names(self) -> List[str]:
        return [event.name for event in self.events]

    def of(self, event_type: Union[EventType, str]) -> List[Event]:
        wanted = EventType(event_type)
        return [event for event in self.events if event.type == wanted]
