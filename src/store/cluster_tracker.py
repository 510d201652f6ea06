"""
Store - Cluster Tracker

Registre des clusters workload: fournit un lecteur par cluster et
maintient les watchs distants (un seul par cluster, type et nom).
"""

from typing import Dict, Optional, Set, Tuple

from src.api.types import Kind, NamespacedName
from src.store.interfaces import (
    ClusterUnreachableError,
    IClusterTracker,
    IObjectReader,
    IObjectStore,
    WatchHandler,
)


class InMemoryClusterTracker(IClusterTracker):
    """
    Tracker de clusters workload adossé à des stores en mémoire.

    Example:
        tracker = InMemoryClusterTracker()
        tracker.register_cluster(NamespacedName("default", "prod"), workload_store)
        reader = await tracker.get_reader(NamespacedName("default", "prod"))
    """

    def __init__(self) -> None:
        self._clusters: Dict[NamespacedName, IObjectStore] = {}
        self._unreachable: Dict[NamespacedName, str] = {}
        self._watches: Set[Tuple[NamespacedName, Kind, str]] = set()

    def register_cluster(self, cluster_key: NamespacedName, store: IObjectStore) -> None:
        """Déclare l'accès à un cluster workload."""
        self._clusters[cluster_key] = store
        self._unreachable.pop(cluster_key, None)

    def mark_unreachable(self, cluster_key: NamespacedName, reason: str = "") -> None:
        """Simule une perte de connectivité vers un cluster."""
        self._unreachable[cluster_key] = reason

    def mark_reachable(self, cluster_key: NamespacedName) -> None:
        self._unreachable.pop(cluster_key, None)

    def _resolve(self, cluster_key: NamespacedName) -> IObjectStore:
        if cluster_key in self._unreachable:
            raise ClusterUnreachableError(cluster_key, self._unreachable[cluster_key])

        store: Optional[IObjectStore] = self._clusters.get(cluster_key)
        if store is None:
            raise ClusterUnreachableError(cluster_key, "no client registered")
        return store

    async def get_reader(self, cluster_key: NamespacedName) -> IObjectReader:
        return self._resolve(cluster_key)

    async def watch(
        self,
        cluster_key: NamespacedName,
        kind: Kind,
        name: str,
        handler: WatchHandler,
    ) -> bool:
        store = self._resolve(cluster_key)

        watch_key = (cluster_key, kind, name)
        if watch_key in self._watches:
            return False

        store.watch(kind, handler)
        self._watches.add(watch_key)
        return True

    def has_watch(self, cluster_key: NamespacedName, kind: Kind, name: str) -> bool:
        return (cluster_key, kind, name) in self._watches
