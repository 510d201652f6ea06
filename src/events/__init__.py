"""
Events

Événements Normal/Warning attachés aux objets:
- RemediationRestricted: admission refusée (trop de machines unhealthy)
- MachineMarkedUnhealthy: machine signalée pour remédiation
- DetectedUnhealthy: machine en attente d'un délai de condition
- ReconcileError: échec d'une passe de réconciliation
"""

from .interfaces import (
    # Enums
    EventType,
    # Raisons
    REMEDIATION_RESTRICTED_REASON,
    MACHINE_MARKED_UNHEALTHY_REASON,
    DETECTED_UNHEALTHY_REASON,
    RECONCILE_ERROR_REASON,
    # Data classes
    Event,
    ObjectReference,
    # Interfaces
    IEventRecorder,
)
from .recorder import EventRecorder, EventRecorderError

__all__ = [
    "EventType",
    "REMEDIATION_RESTRICTED_REASON",
    "MACHINE_MARKED_UNHEALTHY_REASON",
    "DETECTED_UNHEALTHY_REASON",
    "RECONCILE_ERROR_REASON",
    "Event",
    "ObjectReference",
    "IEventRecorder",
    "EventRecorder",
    "EventRecorderError",
]
