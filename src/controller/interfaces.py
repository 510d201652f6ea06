"""
Controller - Interfaces

Types partagés par la boucle de contrôle: résultat d'une passe,
dépendances injectées et exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from src.api.types import NamespacedName, utc_now
from src.core.interfaces import ControllerConfig
from src.events.interfaces import IEventRecorder
from src.logging.interfaces import IStructuredLogger
from src.store.interfaces import IClusterTracker, IObjectStore, WatchHandler


# ══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════════════


class ReconcileError(Exception):
    """Échec d'une passe de réconciliation (réessayée avec backoff)."""

    def __init__(self, key: NamespacedName, message: str) -> None:
        self.key = key
        super().__init__(f"failed to reconcile {key}: {message}")


class AggregateReconcileError(ReconcileError):
    """La passe et le patch final du status ont échoué tous les deux."""

    def __init__(self, key: NamespacedName, errors: List[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__(key, "; ".join(str(e) for e in self.errors))


class WorkQueueShutDownError(Exception):
    """File de travail arrêtée et vide."""

    pass


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Result:
    """
    Résultat d'une passe.

    requeue_after prime sur requeue: re-passe planifiée après ce délai.
    """

    requeue: bool = False
    requeue_after: Optional[timedelta] = None


# Fabrique du handler de notifications Node pour un cluster workload
NodeHandlerFactory = Callable[[NamespacedName], WatchHandler]


@dataclass
class Dependencies:
    """
    Dépendances du contrôleur, construites une fois au démarrage et
    passées explicitement au driver.
    """

    store: IObjectStore
    tracker: IClusterTracker
    recorder: IEventRecorder
    logger: IStructuredLogger
    config: ControllerConfig = field(default_factory=ControllerConfig)
    clock: Callable[[], datetime] = utc_now
    node_handler_factory: Optional[NodeHandlerFactory] = None


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IReconciler(ABC):
    """Une passe de réconciliation par work item."""

    @abstractmethod
    async def reconcile(self, key: NamespacedName) -> Result:
        """
        Réconcilie la policy identifiée par key.

        Raises:
            ReconcileError: Erreur transitoire (store, cluster distant, patch)
        """
        pass
