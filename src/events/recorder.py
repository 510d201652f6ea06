"""
Events - Recorder

Enregistreur d'événements avec historique borné et agrégation des
répétitions. Chaque événement est aussi journalisé.
"""

from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional

from src.api.types import NamespacedName, StoreObject, object_key, utc_now
from src.logging.interfaces import IStructuredLogger, LogLevel

from .interfaces import Event, EventType, IEventRecorder, ObjectReference


class EventRecorderError(Exception):
    """Erreur d'enregistrement d'événement."""

    pass


class EventRecorder(IEventRecorder):
    """
    Enregistreur d'événements.

    Example:
        recorder = EventRecorder(logger)
        recorder.event(policy, EventType.WARNING, "RemediationRestricted",
                       "Remediation restricted due to exceeded number of unhealthy machines")
    """

    DEFAULT_HISTORY_SIZE: int = 500

    def __init__(
        self,
        logger: Optional[IStructuredLogger] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            logger: Logger structuré (optionnel)
            history_size: Nombre maximum d'événements conservés
            clock: Horloge (injectable pour tests)

        Raises:
            ValueError: Si history_size < 1
        """
        if history_size < 1:
            raise ValueError(f"history_size must be >= 1, got {history_size}")

        self._logger = logger
        self._clock = clock
        self._events: Deque[Event] = deque(maxlen=history_size)

    def event(
        self,
        obj: StoreObject,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> Event:
        """
        Enregistre un événement, ou incrémente le compteur d'un événement
        identique déjà présent.

        Raises:
            EventRecorderError: Si reason vide ou type invalide
        """
        if not reason:
            raise EventRecorderError("event reason is required")
        if not isinstance(event_type, EventType):
            raise EventRecorderError(f"invalid event type: {event_type}")

        now = self._clock()
        candidate = Event(
            type=event_type,
            reason=reason,
            message=message,
            involved=ObjectReference(
                kind=obj.kind, key=object_key(obj), uid=obj.metadata.uid
            ),
            first_timestamp=now,
            last_timestamp=now,
        )

        recorded = self._aggregate(candidate)
        self._log(recorded)
        return recorded

    def _aggregate(self, candidate: Event) -> Event:
        for existing in self._events:
            if existing.matches(candidate):
                existing.count += 1
                existing.last_timestamp = candidate.last_timestamp
                return existing
        self._events.append(candidate)
        return candidate

    def _log(self, event: Event) -> None:
        if self._logger is None:
            return
        level = LogLevel.WARN if event.type == EventType.WARNING else LogLevel.INFO
        self._logger.log(
            level,
            event.message or event.reason,
            resource=str(event.involved.key),
            event_reason=event.reason,
            event_type=event.type.value,
            kind=event.involved.kind.value,
            count=event.count,
        )

    def get_events(
        self,
        reason: Optional[str] = None,
        key: Optional[NamespacedName] = None,
    ) -> List[Event]:
        events = list(self._events)
        if reason is not None:
            events = [e for e in events if e.reason == reason]
        if key is not None:
            events = [e for e in events if e.involved.key == key]
        return events

    def clear(self) -> None:
        """Efface l'historique (pour tests)."""
        self._events.clear()
