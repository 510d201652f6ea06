"""
Health Check - Target Resolver

Résout les cibles d'une policy: machines du cluster de la policy,
sélectionnées par son sélecteur, hors machines en cours de suppression,
chacune avec son Node lu sur le cluster workload.
"""

from typing import List, Optional

from src.api import selectors
from src.api.types import (
    CLUSTER_NAME_LABEL,
    HealthCheckPolicy,
    Kind,
    Machine,
    NamespacedName,
    Node,
    object_key,
)
from src.logging.interfaces import IStructuredLogger
from src.store.interfaces import (
    IClusterTracker,
    IObjectReader,
    IObjectStore,
    NotFoundError,
    StoreError,
)
from src.store.patch_helper import PatchHelper

from .interfaces import ITargetResolver, Target, TargetResolutionError


class TargetResolver(ITargetResolver):
    """
    Résolution des cibles. Lecture seule.

    Un Node introuvable n'est pas une erreur: la cible est produite sans
    Node (node_missing) et l'évaluateur en décide.
    """

    def __init__(
        self,
        store: IObjectStore,
        tracker: IClusterTracker,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        """
        Args:
            store: Store du cluster de gestion (machines, patchs)
            tracker: Accès aux clusters workload (nodes)
            logger: Logger structuré (optionnel)
        """
        self._store = store
        self._tracker = tracker
        self._logger = logger

    async def resolve(self, policy: HealthCheckPolicy) -> List[Target]:
        policy_key = object_key(policy)
        machines = await self._list_machines(policy)
        if not machines:
            return []

        reader: Optional[IObjectReader] = None
        targets: List[Target] = []
        for machine in machines:
            node: Optional[Node] = None
            node_missing = False

            if machine.status.node_ref is not None:
                if reader is None:
                    reader = await self._get_reader(policy)
                try:
                    node = await reader.get(
                        Kind.NODE, NamespacedName("", machine.status.node_ref.name)
                    )
                except NotFoundError:
                    node_missing = True
                except StoreError as e:
                    raise TargetResolutionError(policy_key, str(e)) from e

            targets.append(
                Target(
                    machine=machine,
                    node=node,
                    patch_helper=PatchHelper(machine, self._store),
                    node_missing=node_missing,
                )
            )

        if self._logger is not None:
            self._logger.debug(
                "Resolved health check targets",
                resource=str(policy_key),
                targets=len(targets),
            )
        return targets

    async def _list_machines(self, policy: HealthCheckPolicy) -> List[Machine]:
        # Sélecteur vide: aucune machine
        if selectors.is_empty(policy.spec.selector):
            return []

        try:
            machines = await self._store.list(
                Kind.MACHINE,
                namespace=policy.metadata.namespace,
                labels={CLUSTER_NAME_LABEL: policy.spec.cluster_name},
            )
        except StoreError as e:
            raise TargetResolutionError(object_key(policy), str(e)) from e

        return [
            m
            for m in machines
            if m.metadata.deletion_timestamp is None
            and selectors.matches(policy.spec.selector, m.metadata.labels)
        ]

    async def _get_reader(self, policy: HealthCheckPolicy) -> IObjectReader:
        cluster_key = NamespacedName(policy.metadata.namespace, policy.spec.cluster_name)
        try:
            return await self._tracker.get_reader(cluster_key)
        except StoreError as e:
            raise TargetResolutionError(object_key(policy), str(e)) from e
