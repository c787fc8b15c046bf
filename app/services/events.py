"""Storage for user interaction events."""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol

from ..models import InteractionEvent


class EventStore(Protocol):
    """Append-only log of interaction events keyed by user."""

    def append(self, event: InteractionEvent) -> None: ...

    def list_by_user(self, user_id: str) -> list[InteractionEvent]: ...


class InMemoryEventStore:
    """Process-wide event log.

    Grows without bound and is lost on restart; suitable for tests and
    single-instance deployments only.
    """

    def __init__(self) -> None:
        self._events: dict[str, list[InteractionEvent]] = defaultdict(list)

    def append(self, event: InteractionEvent) -> None:
        self._events[event.user_id].append(event)

    def list_by_user(self, user_id: str) -> list[InteractionEvent]:
        return list(self._events.get(user_id, ()))

    def __len__(self) -> int:
        return sum(len(events) for events in self._events.values())
