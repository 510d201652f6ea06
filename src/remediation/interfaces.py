"""
Remediation - Interfaces

Admission (disjoncteur) et signalement de remédiation.

La remédiation elle-même est faite par un contrôleur en aval: ce module
ne fait que poser la condition OwnerRemediated (WaitingForRemediation)
sur les machines admises.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from src.api.types import HealthCheckPolicy, IntOrPercent, NamespacedName
from src.healthcheck.interfaces import HealthEvaluation, Target


# ══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════════════


class InvalidMaxUnhealthyError(ValueError):
    """maxUnhealthy non résoluble (refus d'admission)."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"invalid maxUnhealthy value: {value!r}")


class RemediationPatchError(Exception):
    """Un ou plusieurs patchs de machines ont échoué."""

    def __init__(self, failures: List[tuple]) -> None:
        # [(NamespacedName, Exception), ...]
        self.failures = list(failures)
        details = ", ".join(f"{key}: {error}" for key, error in self.failures)
        super().__init__(f"failed to patch {len(self.failures)} machine(s): {details}")

    @property
    def keys(self) -> List[NamespacedName]:
        return [key for key, _ in self.failures]


# ══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AdmissionDecision:
    """
    Décision d'admission d'une passe.

    unhealthy = expected - current_healthy: les cibles PENDING comptent
    comme unhealthy.
    """

    allowed: bool
    expected: int
    current_healthy: int
    unhealthy: int
    max_unhealthy: Optional[IntOrPercent]
    # None si maxUnhealthy absent ou invalide
    resolved_max: Optional[int]
    remediations_allowed: int
    reason: str = ""

    @property
    def malformed(self) -> bool:
        return self.max_unhealthy is not None and self.resolved_max is None


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IAdmissionController(ABC):
    """Disjoncteur de remédiation."""

    @abstractmethod
    def decide(
        self,
        expected: int,
        current_healthy: int,
        max_unhealthy: Optional[IntOrPercent],
    ) -> AdmissionDecision:
        """
        Décide si la remédiation est permise pour cette passe.

        Args:
            expected: Nombre de cibles
            current_healthy: Nombre de cibles HEALTHY
            max_unhealthy: Borne absolue ou pourcentage (None = pas de borne)

        Returns:
            AdmissionDecision (refus si maxUnhealthy invalide)
        """
        pass


class IRemediationSignaler(ABC):
    """Application des verdicts sur les machines et la policy."""

    @abstractmethod
    async def signal(
        self,
        policy: HealthCheckPolicy,
        evaluation: HealthEvaluation,
        decision: AdmissionDecision,
        now: datetime,
    ) -> None:
        """
        Pose les conditions observées et, si admis, la condition de
        remédiation; persiste chaque machine modifiée.

        Raises:
            RemediationPatchError: Au moins un patch a échoué
        """
        pass

    @abstractmethod
    def update_policy_status(
        self,
        policy: HealthCheckPolicy,
        targets: List[Target],
        evaluation: HealthEvaluation,
        decision: AdmissionDecision,
        now: datetime,
    ) -> None:
        """Recalcule le status observé de la policy (en mémoire)."""
        pass
