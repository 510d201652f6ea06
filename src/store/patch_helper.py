"""
Store - Patch Helper

Handle de patch par objet: capture l'état initial, calcule le diff des
champs modifiés et ne l'envoie au store que s'il est non vide.

PatchScope garantit l'écriture du diff à la sortie d'un bloc, y compris
en cas d'erreur, et agrège l'échec du patch avec l'erreur principale.
"""

import copy
from typing import Any, Dict, List, Optional

from src.api.types import StoreObject
from src.store.interfaces import IObjectStore, PatchDiff


# Champs suivis par le diff
PATCHED_FIELDS: tuple = (
    "metadata.labels",
    "metadata.annotations",
    "metadata.owner_references",
    "spec",
    "status",
)

_MISSING = object()


class AggregateError(Exception):
    """Plusieurs erreurs survenues dans la même passe."""

    def __init__(self, errors: List[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))


def _resolve(obj: Any, path: str) -> Any:
    target = obj
    for attribute in path.split("."):
        target = getattr(target, attribute, _MISSING)
        if target is _MISSING:
            return _MISSING
    return target


class PatchHelper:
    """
    Handle de patch d'un objet.

    Example:
        helper = PatchHelper(machine, store)
        machine.metadata.labels["role"] = "worker"
        await helper.patch()  # envoie {"metadata.labels": {...}}
    """

    def __init__(self, obj: StoreObject, store: IObjectStore) -> None:
        self._obj = obj
        self._store = store
        self._before = self._snapshot()

    @property
    def obj(self) -> StoreObject:
        return self._obj

    def _snapshot(self) -> Dict[str, Any]:
        snapshot: Dict[str, Any] = {}
        for path in PATCHED_FIELDS:
            value = _resolve(self._obj, path)
            if value is not _MISSING:
                snapshot[path] = copy.deepcopy(value)
        return snapshot

    def compute_diff(self) -> PatchDiff:
        """Retourne les champs modifiés depuis la capture."""
        diff: PatchDiff = {}
        for path, before in self._before.items():
            current = _resolve(self._obj, path)
            if current != before:
                diff[path] = copy.deepcopy(current)
        return diff

    async def patch(self) -> bool:
        """
        Envoie le diff au store.

        Returns:
            True si un patch a été envoyé, False si rien n'a changé

        Raises:
            StoreError: Échec du patch (propagé, pas de retry local)
        """
        diff = self.compute_diff()
        if not diff:
            return False

        updated = await self._store.patch(self._obj, diff)
        self._obj.metadata.resource_version = updated.metadata.resource_version
        self._before = self._snapshot()
        return True


class PatchScope:
    """
    Portée d'écriture garantie.

    Le patch est toujours tenté à la sortie du bloc. Si le bloc et le patch
    échouent tous les deux, les deux erreurs sont remontées ensemble
    (AggregateError), la première n'est jamais masquée.

    Example:
        async with PatchScope(policy, store):
            policy.status.expected_machines = 3
    """

    def __init__(self, obj: StoreObject, store: IObjectStore) -> None:
        self._helper = PatchHelper(obj, store)

    async def __aenter__(self) -> PatchHelper:
        return self._helper

    async def __aexit__(self, exc_type, exc: Optional[BaseException], tb) -> bool:
        try:
            await self._helper.patch()
        except Exception as patch_error:
            if exc is None:
                raise
            raise AggregateError([exc, patch_error]) from exc
        return False
