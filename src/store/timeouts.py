"""
Store - Timeouts

Borne la durée de chaque appel au store. Un dépassement est une erreur
transitoire, traitée par le retry avec backoff de la file de travail.
"""

import asyncio
from typing import Any, Awaitable, Dict, List, Optional

from src.api.types import Kind, NamespacedName, StoreObject
from src.store.interfaces import (
    IndexExtractor,
    IndexQuery,
    IObjectStore,
    PatchDiff,
    StoreTimeoutError,
    WatchHandler,
)


class InvalidTimeoutError(ValueError):
    """Configuration timeout invalide."""

    pass


class TimedObjectStore(IObjectStore):
    """
    Décorateur de store: chaque appel est borné par `timeout` secondes.

    watch et add_index sont délégués tels quels.
    """

    MAX_TIMEOUT: float = 300.0

    def __init__(self, inner: IObjectStore, timeout: float) -> None:
        """
        Args:
            inner: Store décoré
            timeout: Durée max par appel en secondes

        Raises:
            InvalidTimeoutError: Timeout <= 0 ou > MAX_TIMEOUT
        """
        if timeout <= 0:
            raise InvalidTimeoutError("store timeout must be positive")
        if timeout > self.MAX_TIMEOUT:
            raise InvalidTimeoutError(
                f"store timeout ({timeout}s) exceeds maximum ({self.MAX_TIMEOUT}s)"
            )

        self._inner = inner
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    async def _bounded(self, operation: str, call: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise StoreTimeoutError(operation, self._timeout)

    async def get(self, kind: Kind, key: NamespacedName) -> StoreObject:
        return await self._bounded("get", self._inner.get(kind, key))

    async def list(
        self,
        kind: Kind,
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        index: Optional[IndexQuery] = None,
    ) -> List[StoreObject]:
        return await self._bounded(
            "list", self._inner.list(kind, namespace=namespace, labels=labels, index=index)
        )

    async def patch(self, obj: StoreObject, diff: PatchDiff) -> StoreObject:
        return await self._bounded("patch", self._inner.patch(obj, diff))

    def watch(self, kind: Kind, handler: WatchHandler) -> None:
        self._inner.watch(kind, handler)

    def add_index(self, kind: Kind, name: str, extractor: IndexExtractor) -> None:
        self._inner.add_index(kind, name, extractor)
