"""In-process event bus connecting the service with the host application."""
from __future__ import annotations

from collections import defaultdict
from typing import Callable, Protocol, TypeVar

from supported_versions.domain.events import ServerEvent

E = TypeVar("E", bound=ServerEvent)


class EventBus(Protocol):
    def listen(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]: ...

    def dispatch(self, event: ServerEvent) -> None: ...


class InMemoryEventBus:
    """Synchronous dispatcher; handlers run in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[type[ServerEvent], list[Callable[[ServerEvent], None]]] = defaultdict(list)
        self._history: list[ServerEvent] = []
        self._record = False

    def listen(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        handlers = self._handlers[event_type]
        handlers.append(handler)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)  # type: ignore[arg-type]

        return unsubscribe

    def dispatch(self, event: ServerEvent) -> None:
        if self._record:
            self._history.append(event)
        for handler in list(self._handlers.get(type(event), ())):
            handler(event)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def record(self) -> list[ServerEvent]:
        """Start keeping every dispatched event and return the live history."""

        self._record = True
        return self._history

    def reset(self) -> None:
        self._handlers.clear()
        self._history.clear()
        self._record = False
