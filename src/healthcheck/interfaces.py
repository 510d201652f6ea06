"""
Health Check - Interfaces

Types du health-check: cibles (Machine + Node éventuel), verdicts
par cible et résultat agrégé d'une évaluation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from src.api.types import HealthCheckPolicy, Machine, NamespacedName, Node, object_key
from src.store.patch_helper import PatchHelper


class TargetResolutionError(Exception):
    """Échec de résolution des cibles d'une policy (erreur du store)."""

    def __init__(self, policy_key: NamespacedName, reason: str) -> None:
        self.policy_key = policy_key
        super().__init__(f"failed to resolve targets of {policy_key}: {reason}")


class TargetHealth(Enum):
    """Classification d'une cible."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    PENDING = "pending"


@dataclass
class Target:
    """
    Cible d'une passe: une Machine, son Node s'il existe, et le handle de
    patch de la Machine.

    Invariant: une seule cible par Machine sélectionnée, Node présent ou non.
    """

    machine: Machine
    node: Optional[Node]
    patch_helper: PatchHelper
    # node_ref renseigné mais Node introuvable
    node_missing: bool = False

    @property
    def key(self) -> NamespacedName:
        return object_key(self.machine)

    def __str__(self) -> str:
        node_name = self.node.metadata.name if self.node is not None else ""
        return f"{self.machine.metadata.namespace}/{self.machine.metadata.name}/{node_name}"


@dataclass
class TargetVerdict:
    """Verdict d'une cible."""

    target: Target
    health: TargetHealth
    reason: str = ""
    message: str = ""
    # Renseigné pour PENDING: instant où le verdict peut changer
    next_check: Optional[datetime] = None


@dataclass
class HealthEvaluation:
    """
    Partition des cibles d'une passe.

    Les cibles PENDING ne comptent ni comme healthy ni comme unhealthy
    dans les listes; next_check_at est le minimum de leurs échéances.
    """

    healthy: List[TargetVerdict] = field(default_factory=list)
    unhealthy: List[TargetVerdict] = field(default_factory=list)
    pending: List[TargetVerdict] = field(default_factory=list)
    next_check_at: Optional[datetime] = None

    @property
    def expected(self) -> int:
        return len(self.healthy) + len(self.unhealthy) + len(self.pending)

    @property
    def current_healthy(self) -> int:
        return len(self.healthy)

    def requeue_after(self, now: datetime) -> Optional[timedelta]:
        """Délai avant la prochaine échéance PENDING, None si aucune."""
        if self.next_check_at is None:
            return None
        delay = self.next_check_at - now
        if delay <= timedelta(0):
            return None
        return delay


class ITargetResolver(ABC):
    """Résolution des cibles d'une policy."""

    @abstractmethod
    async def resolve(self, policy: HealthCheckPolicy) -> List[Target]:
        """
        Retourne les cibles courantes de la policy.

        Raises:
            TargetResolutionError: Erreur du store (avorte la passe)
        """
        pass


class IHealthEvaluator(ABC):
    """Classification des cibles."""

    @abstractmethod
    def evaluate(
        self,
        targets: List[Target],
        policy: HealthCheckPolicy,
        now: datetime,
    ) -> HealthEvaluation:
        """
        Classe chaque cible en HEALTHY, UNHEALTHY ou PENDING.

        Args:
            targets: Cibles résolues
            policy: Policy (règles et délai de démarrage)
            now: Instant de référence

        Returns:
            HealthEvaluation avec l'échéance PENDING minimale
        """
        pass
