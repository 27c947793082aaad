"""Notifier collaborator. Delivery is fire-and-forget from the engine's point of view."""

from typing import Any, Protocol

from src.core.clock import Clock, SystemClock
from src.integrations.notifications.schemas import Notification, NotificationType


class Notifier(Protocol):
    async def notify(
        self, user_id: int, event_type: NotificationType, payload: dict[str, Any]
    ) -> None: ...


class InMemoryNotifier:
    """Keeps notifications in order of delivery, only the newest `max_history` when set."""

    def __init__(self, clock: Clock | None = None, max_history: int | None = None):
        self._clock = clock or SystemClock()
        self._max_history = max_history
        self.sent: list[Notification] = []

    async def notify(
        self, user_id: int, event_type: NotificationType, payload: dict[str, Any]
    ) -> None:
        self.sent.append(
            Notification(
                user_id=user_id,
                event_type=event_type,
                payload=dict(payload),
                created_at=self._clock.now(),
            )
        )
        if self._max_history is not None and len(self.sent) > self._max_history:
            del self.sent[: len(self.sent) - self._max_history]

    def for_user(
        self, user_id: int, event_type: NotificationType | None = None
    ) -> list[Notification]:
        return [
            n
            for n in self.sent
            if n.user_id == user_id and (event_type is None or n.event_type == event_type)
        ]

    def of_type(self, event_type: NotificationType) -> list[Notification]:
        return [n for n in self.sent if n.event_type == event_type]

    def clear(self) -> None:
        self.sent.clear()
