"""
Store - Interfaces

Contrats d'accès au store d'objets (cluster de gestion) et aux clusters
workload distants.

Le store est la seule ressource mutable partagée: toute mutation passe par
un patch optimiste sur un seul objet, sans transaction multi-objets.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from src.api.types import Kind, NamespacedName, StoreObject


# ══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════════════


class StoreError(Exception):
    """Erreur du store (transitoire sauf indication contraire)."""

    pass


class NotFoundError(StoreError):
    """Objet inexistant."""

    def __init__(self, kind: Kind, key: NamespacedName) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.value} {key} not found")


class ConflictError(StoreError):
    """Version d'objet obsolète lors d'une écriture."""

    def __init__(self, kind: Kind, key: NamespacedName) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.value} {key} has been modified concurrently")


class StoreTimeoutError(StoreError):
    """Appel au store trop long."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"store {operation} timed out after {timeout}s")


class ClusterUnreachableError(StoreError):
    """Cluster workload injoignable."""

    def __init__(self, cluster_key: NamespacedName, reason: str = "") -> None:
        self.cluster_key = cluster_key
        detail = f": {reason}" if reason else ""
        super().__init__(f"cluster {cluster_key} is unreachable{detail}")


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


class WatchEventType(Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class WatchNotification:
    """Notification de changement d'un objet."""

    event_type: WatchEventType
    obj: StoreObject


WatchHandler = Callable[[WatchNotification], Awaitable[None]]

# Extraction des valeurs d'index d'un objet
IndexExtractor = Callable[[StoreObject], List[str]]

# Chemin de champ ("status", "metadata.labels") -> nouvelle valeur
PatchDiff = Dict[str, Any]

# (nom d'index, valeur)
IndexQuery = Tuple[str, str]


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IObjectReader(ABC):
    """Lecture d'objets."""

    @abstractmethod
    async def get(self, kind: Kind, key: NamespacedName) -> StoreObject:
        """
        Récupère un objet.

        Raises:
            NotFoundError: Objet inexistant
            StoreError: Erreur d'accès
        """
        pass

    @abstractmethod
    async def list(
        self,
        kind: Kind,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        index: Optional[IndexQuery] = None,
    ) -> List[StoreObject]:
        """
        Liste les objets d'un type.

        Args:
            kind: Type d'objet
            namespace: Restreint à un namespace (None = tous)
            labels: Égalité stricte sur ces labels
            index: Filtre (nom d'index, valeur) sur un index déclaré

        Raises:
            StoreError: Erreur d'accès ou index inconnu
        """
        pass


class IObjectStore(IObjectReader):
    """Lecture, patch et watch d'objets."""

    @abstractmethod
    async def patch(self, obj: StoreObject, diff: PatchDiff) -> StoreObject:
        """
        Applique un diff sur un seul objet.

        Returns:
            Objet à jour (nouvelle resource_version)

        Raises:
            NotFoundError: Objet supprimé entre-temps
            StoreError: Erreur d'accès
        """
        pass

    @abstractmethod
    def watch(self, kind: Kind, handler: WatchHandler) -> None:
        """Enregistre un handler de notifications pour un type."""
        pass

    @abstractmethod
    def add_index(self, kind: Kind, name: str, extractor: IndexExtractor) -> None:
        """Déclare un index sur un type."""
        pass


class IClusterTracker(ABC):
    """Accès aux clusters workload distants."""

    @abstractmethod
    async def get_reader(self, cluster_key: NamespacedName) -> IObjectReader:
        """
        Retourne un lecteur sur le cluster workload.

        Raises:
            ClusterUnreachableError: Cluster injoignable (transitoire)
        """
        pass

    @abstractmethod
    async def watch(
        self,
        cluster_key: NamespacedName,
        kind: Kind,
        name: str,
        handler: WatchHandler,
    ) -> bool:
        """
        Enregistre un watch sur le cluster workload (idempotent par nom).

        Returns:
            True si le watch vient d'être créé

        Raises:
            ClusterUnreachableError: Cluster injoignable (transitoire)
        """
        pass
