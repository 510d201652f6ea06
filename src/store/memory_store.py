"""
Store - In-Memory Object Store

Implémentation en mémoire du store d'objets: sert de cache local aux
contrôleurs, de lecteur de cluster workload et de support aux tests.

Les objets sont copiés en entrée et en sortie: un appelant ne peut jamais
modifier l'état stocké sans passer par patch/update.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.api.types import Kind, NamespacedName, StoreObject, object_key
from src.logging.interfaces import IStructuredLogger
from src.store.interfaces import (
    ConflictError,
    IndexExtractor,
    IndexQuery,
    IObjectStore,
    NotFoundError,
    PatchDiff,
    StoreError,
    WatchEventType,
    WatchHandler,
    WatchNotification,
)


class InMemoryObjectStore(IObjectStore):
    """
    Store d'objets en mémoire avec index et watch.

    Example:
        store = InMemoryObjectStore()
        store.add_index(Kind.MACHINE, MACHINE_NODE_NAME_INDEX, index_machine_by_node_name)
        await store.create(machine)
        machines = await store.list(Kind.MACHINE, index=(MACHINE_NODE_NAME_INDEX, "node-1"))
    """

    def __init__(self, logger: Optional[IStructuredLogger] = None) -> None:
        """
        Args:
            logger: Logger pour les échecs de handlers de watch
        """
        self._objects: Dict[Kind, Dict[NamespacedName, StoreObject]] = {kind: {} for kind in Kind}
        self._handlers: Dict[Kind, List[WatchHandler]] = {kind: [] for kind in Kind}
        self._indexes: Dict[Kind, Dict[str, IndexExtractor]] = {kind: {} for kind in Kind}
        self._logger = logger
        self._version = 0

    # ──────────────────────────────────────────────────────────────────────────
    # Lecture
    # ──────────────────────────────────────────────────────────────────────────

    async def get(self, kind: Kind, key: NamespacedName) -> StoreObject:
        obj = self._objects[kind].get(key)
        if obj is None:
            raise NotFoundError(kind, key)
        return copy.deepcopy(obj)

    async def list(
        self,
        kind: Kind,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        index: Optional[IndexQuery] = None,
    ) -> List[StoreObject]:
        extractor: Optional[IndexExtractor] = None
        if index is not None:
            extractor = self._indexes[kind].get(index[0])
            if extractor is None:
                raise StoreError(f"index {index[0]!r} is not declared for {kind.value}")

        result: List[StoreObject] = []
        for key in sorted(self._objects[kind], key=str):
            obj = self._objects[kind][key]
            if namespace is not None and obj.metadata.namespace != namespace:
                continue
            if labels and any(obj.metadata.labels.get(k) != v for k, v in labels.items()):
                continue
            if extractor is not None and index[1] not in extractor(obj):
                continue
            result.append(copy.deepcopy(obj))

        return result

    # ──────────────────────────────────────────────────────────────────────────
    # Écriture
    # ──────────────────────────────────────────────────────────────────────────

    async def create(self, obj: StoreObject) -> StoreObject:
        """
        Crée un objet.

        Raises:
            ConflictError: Un objet de même identité existe déjà
        """
        key = object_key(obj)
        if key in self._objects[obj.kind]:
            raise ConflictError(obj.kind, key)

        stored = copy.deepcopy(obj)
        stored.metadata.resource_version = self._next_version()
        self._objects[obj.kind][key] = stored

        await self._notify(WatchEventType.ADDED, stored)
        return copy.deepcopy(stored)

    async def update(self, obj: StoreObject) -> StoreObject:
        """
        Remplace un objet entier (contrôle de version optimiste).

        Raises:
            NotFoundError: Objet inexistant
            ConflictError: resource_version obsolète
        """
        key = object_key(obj)
        current = self._objects[obj.kind].get(key)
        if current is None:
            raise NotFoundError(obj.kind, key)
        if current.metadata.resource_version != obj.metadata.resource_version:
            raise ConflictError(obj.kind, key)

        stored = copy.deepcopy(obj)
        stored.metadata.resource_version = self._next_version()
        self._objects[obj.kind][key] = stored

        await self._notify(WatchEventType.MODIFIED, stored)
        return copy.deepcopy(stored)

    async def patch(self, obj: StoreObject, diff: PatchDiff) -> StoreObject:
        key = object_key(obj)
        current = self._objects[obj.kind].get(key)
        if current is None:
            raise NotFoundError(obj.kind, key)

        for path, value in diff.items():
            _assign(current, path, copy.deepcopy(value))
        current.metadata.resource_version = self._next_version()

        await self._notify(WatchEventType.MODIFIED, current)
        return copy.deepcopy(current)

    async def delete(self, kind: Kind, key: NamespacedName) -> None:
        """
        Supprime un objet.

        Raises:
            NotFoundError: Objet inexistant
        """
        obj = self._objects[kind].pop(key, None)
        if obj is None:
            raise NotFoundError(kind, key)

        await self._notify(WatchEventType.DELETED, obj)

    async def mark_deleting(self, kind: Kind, key: NamespacedName) -> None:
        """Pose un deletion_timestamp (suppression en cours)."""
        obj = self._objects[kind].get(key)
        if obj is None:
            raise NotFoundError(kind, key)

        obj.metadata.deletion_timestamp = datetime.now(timezone.utc)
        obj.metadata.resource_version = self._next_version()
        await self._notify(WatchEventType.MODIFIED, obj)

    # ──────────────────────────────────────────────────────────────────────────
    # Watch et index
    # ──────────────────────────────────────────────────────────────────────────

    def watch(self, kind: Kind, handler: WatchHandler) -> None:
        self._handlers[kind].append(handler)

    def add_index(self, kind: Kind, name: str, extractor: IndexExtractor) -> None:
        if name in self._indexes[kind]:
            raise StoreError(f"index {name!r} already declared for {kind.value}")
        self._indexes[kind][name] = extractor

    async def _notify(self, event_type: WatchEventType, obj: StoreObject) -> None:
        for handler in list(self._handlers[obj.kind]):
            notification = WatchNotification(event_type=event_type, obj=copy.deepcopy(obj))
            try:
                await handler(notification)
            except Exception as e:
                # Un handler défaillant ne doit pas faire échouer l'écriture
                if self._logger is not None:
                    self._logger.error(
                        "Watch handler failed",
                        kind=obj.kind.value,
                        object=str(object_key(obj)),
                        error=str(e),
                    )

    def _next_version(self) -> int:
        self._version += 1
        return self._version


def _assign(obj: Any, path: str, value: Any) -> None:
    """Affecte `value` au champ pointé par un chemin pointé ("metadata.labels")."""
    *parents, leaf = path.split(".")
    target = obj
    for attribute in parents:
        target = getattr(target, attribute)
    if not hasattr(target, leaf):
        raise StoreError(f"unknown field path {path!r} for {type(obj).__name__}")
    setattr(target, leaf, value)
