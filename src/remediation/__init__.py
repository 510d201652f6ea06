"""
Remediation

Disjoncteur et signalement de remédiation:
- AdmissionController: borne maxUnhealthy (entier ou pourcentage, floor),
  refus si invalide
- RemediationSignaler: conditions observées, condition OwnerRemediated
  et événements
"""

from .interfaces import (
    # Data classes
    AdmissionDecision,
    # Interfaces
    IAdmissionController,
    IRemediationSignaler,
    # Exceptions
    InvalidMaxUnhealthyError,
    RemediationPatchError,
)
from .admission import AdmissionController, resolve_max_unhealthy
from .signaler import RemediationSignaler

__all__ = [
    "AdmissionDecision",
    "IAdmissionController",
    "IRemediationSignaler",
    "InvalidMaxUnhealthyError",
    "RemediationPatchError",
    "AdmissionController",
    "resolve_max_unhealthy",
    "RemediationSignaler",
]
