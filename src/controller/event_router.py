"""
Controller - Event Router

Traduit les notifications de changement (Cluster, Machine, Node, policy)
en work items: les identités des HealthCheckPolicy à réconcilier.

Chaque type de notification est une variante étiquetée par WatchKind;
la table de handlers doit couvrir toutes les variantes.

Les erreurs de listage sont journalisées et ne produisent aucun work
item: une notification ultérieure redéclenchera la réconciliation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, ClassVar, Dict, List, Optional, Union

from src.api import selectors
from src.api.types import (
    CLUSTER_NAME_LABEL,
    MACHINE_NODE_NAME_INDEX,
    Cluster,
    HealthCheckPolicy,
    Kind,
    Machine,
    NamespacedName,
    Node,
    object_key,
)
from src.logging.interfaces import IStructuredLogger
from src.store.interfaces import IObjectReader, StoreError


class WatchKind(Enum):
    """Discriminant des notifications."""

    CLUSTER = "cluster"
    MACHINE = "machine"
    NODE = "node"
    POLICY = "policy"


@dataclass(frozen=True)
class ClusterChanged:
    cluster: Cluster

    kind: ClassVar[WatchKind] = WatchKind.CLUSTER


@dataclass(frozen=True)
class MachineChanged:
    machine: Machine

    kind: ClassVar[WatchKind] = WatchKind.MACHINE


@dataclass(frozen=True)
class NodeChanged:
    """Node modifié sur un cluster workload (cluster_key si connu)."""

    node: Node
    cluster_key: Optional[NamespacedName] = None

    kind: ClassVar[WatchKind] = WatchKind.NODE


@dataclass(frozen=True)
class PolicyChanged:
    policy: HealthCheckPolicy

    kind: ClassVar[WatchKind] = WatchKind.POLICY


ChangeNotification = Union[ClusterChanged, MachineChanged, NodeChanged, PolicyChanged]

RouteHandler = Callable[[ChangeNotification], Awaitable[List[NamespacedName]]]


class IncompleteRoutingError(Exception):
    """Table de routage ne couvrant pas toutes les variantes."""

    def __init__(self, missing: List[WatchKind]) -> None:
        self.missing = missing
        names = ", ".join(k.value for k in missing)
        super().__init__(f"no route handler for: {names}")


def machine_node_names(obj: Machine) -> List[str]:
    """Extracteur de l'index status.nodeRef.name."""
    if obj.status.node_ref is None:
        return []
    return [obj.status.node_ref.name]


def machine_cluster_name(machine: Machine) -> str:
    return machine.metadata.labels.get(CLUSTER_NAME_LABEL) or machine.spec.cluster_name


class EventRouter:
    """
    Routage notification -> work items.

    Example:
        router = EventRouter(store, logger)
        keys = await router.route(NodeChanged(node))
    """

    def __init__(
        self,
        reader: IObjectReader,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        """
        Args:
            reader: Lecteur du cluster de gestion (policies, machines)
            logger: Logger structuré (optionnel)

        Raises:
            IncompleteRoutingError: Variante sans handler
        """
        self._reader = reader
        self._logger = logger
        self._handlers: Dict[WatchKind, RouteHandler] = {
            WatchKind.CLUSTER: self._route_cluster,
            WatchKind.MACHINE: self._route_machine,
            WatchKind.NODE: self._route_node,
            WatchKind.POLICY: self._route_policy,
        }
        missing = [k for k in WatchKind if k not in self._handlers]
        if missing:
            raise IncompleteRoutingError(missing)

    async def route(self, notification: ChangeNotification) -> List[NamespacedName]:
        """Work items produits par une notification (sans doublons, triés)."""
        keys = await self._handlers[notification.kind](notification)
        return sorted(set(keys), key=str)

    async def _route_cluster(self, notification: ClusterChanged) -> List[NamespacedName]:
        return await self.cluster_to_policies(notification.cluster)

    async def _route_machine(self, notification: MachineChanged) -> List[NamespacedName]:
        return await self.machine_to_policies(notification.machine)

    async def _route_node(self, notification: NodeChanged) -> List[NamespacedName]:
        return await self.node_to_policies(notification.node, notification.cluster_key)

    async def _route_policy(self, notification: PolicyChanged) -> List[NamespacedName]:
        return [object_key(notification.policy)]

    # ──────────────────────────────────────────────────────────────────────────
    # Mappings
    # ──────────────────────────────────────────────────────────────────────────

    async def cluster_to_policies(self, cluster: Cluster) -> List[NamespacedName]:
        """Toutes les policies du cluster. Cluster en pause: aucune."""
        if cluster.spec.paused:
            return []

        policies = await self._list_policies(cluster.metadata.namespace, cluster.metadata.name)
        if policies is None:
            return []
        return [object_key(p) for p in policies]

    async def machine_to_policies(self, machine: Machine) -> List[NamespacedName]:
        """Policies du cluster de la machine dont le sélecteur la couvre."""
        cluster_name = machine_cluster_name(machine)
        if not cluster_name:
            return []

        policies = await self._list_policies(machine.metadata.namespace, cluster_name)
        if policies is None:
            return []
        return [
            object_key(p)
            for p in policies
            if selectors.matches(p.spec.selector, machine.metadata.labels)
        ]

    async def node_to_policies(
        self,
        node: Node,
        cluster_key: Optional[NamespacedName] = None,
    ) -> List[NamespacedName]:
        """
        Résout le Node vers son unique Machine puis délègue au mapping
        Machine. Zéro ou plusieurs machines: journalisé, aucun work item.
        """
        node_name = node.metadata.name
        try:
            machines = await self._reader.list(
                Kind.MACHINE,
                namespace=cluster_key.namespace if cluster_key else None,
                index=(MACHINE_NODE_NAME_INDEX, node_name),
            )
        except StoreError as e:
            self._log_error("Failed to list machines for node", node_name, e)
            return []

        # L'index peut être périmé: re-filtrage sur le nom du node
        machines = [m for m in machines if node_name in machine_node_names(m)]
        if cluster_key is not None:
            machines = [m for m in machines if machine_cluster_name(m) == cluster_key.name]

        if len(machines) != 1:
            if self._logger is not None:
                self._logger.debug(
                    "Dropping node notification: no unique owning machine",
                    resource=node_name,
                    machines=len(machines),
                )
            return []

        return await self.machine_to_policies(machines[0])

    async def _list_policies(
        self, namespace: str, cluster_name: str
    ) -> Optional[List[HealthCheckPolicy]]:
        try:
            return await self._reader.list(
                Kind.HEALTH_CHECK_POLICY,
                namespace=namespace,
                labels={CLUSTER_NAME_LABEL: cluster_name},
            )
        except StoreError as e:
            self._log_error(
                "Failed to list health check policies",
                str(NamespacedName(namespace, cluster_name)),
                e,
            )
            return None

    def _log_error(self, message: str, resource: str, error: Exception) -> None:
        if self._logger is not None:
            self._logger.error(message, resource=resource, error=str(error))
