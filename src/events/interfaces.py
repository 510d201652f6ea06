"""
Events - Interfaces

Événements attachés aux objets (policy, machine): trace visible par
l'opérateur des décisions du moteur de health-check.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.api.types import Kind, NamespacedName, StoreObject


class EventType(Enum):
    """Sévérité d'un événement."""

    NORMAL = "Normal"
    WARNING = "Warning"


# Raisons émises par le contrôleur
REMEDIATION_RESTRICTED_REASON: str = "RemediationRestricted"
MACHINE_MARKED_UNHEALTHY_REASON: str = "MachineMarkedUnhealthy"
DETECTED_UNHEALTHY_REASON: str = "DetectedUnhealthy"
RECONCILE_ERROR_REASON: str = "ReconcileError"


@dataclass(frozen=True)
class ObjectReference:
    """Objet concerné par un événement."""

    kind: Kind
    key: NamespacedName
    uid: str = ""


@dataclass
class Event:
    """
    Événement enregistré.

    Les répétitions d'un même événement (même objet, type, raison,
    message) incrémentent count au lieu de créer une nouvelle entrée.
    """

    type: EventType
    reason: str
    message: str
    involved: ObjectReference
    first_timestamp: datetime
    last_timestamp: datetime
    count: int = 1

    def matches(self, other: "Event") -> bool:
        return (
            self.involved == other.involved
            and self.type == other.type
            and self.reason == other.reason
            and self.message == other.message
        )


class IEventRecorder(ABC):
    """Interface d'enregistrement d'événements."""

    @abstractmethod
    def event(
        self,
        obj: StoreObject,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> Event:
        """
        Enregistre un événement sur un objet.

        Args:
            obj: Objet concerné
            event_type: Normal ou Warning
            reason: Raison courte (CamelCase)
            message: Message lisible

        Returns:
            Événement créé ou agrégé
        """
        pass

    @abstractmethod
    def get_events(
        self,
        reason: Optional[str] = None,
        key: Optional[NamespacedName] = None,
    ) -> List[Event]:
        """Retourne l'historique, filtré par raison et/ou objet."""
        pass
