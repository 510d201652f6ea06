"""
API - Types

Objets manipulés par le moteur de health-check:
- Cluster (cluster de gestion)
- Machine (membre de la flotte)
- Node (cluster workload, lecture seule)
- HealthCheckPolicy (règles de health-check et status observé)
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Union


# Label posé sur les objets appartenant à un cluster
CLUSTER_NAME_LABEL: str = "cluster.x-k8s.io/cluster-name"

# Annotation de mise en pause de la réconciliation
PAUSED_ANNOTATION: str = "cluster.x-k8s.io/paused"

# Index des machines par nom de node
MACHINE_NODE_NAME_INDEX: str = "status.nodeRef.name"

API_VERSION: str = "cluster.x-k8s.io/v1alpha3"


class Kind(Enum):
    """Types d'objets connus du store."""

    CLUSTER = "Cluster"
    MACHINE = "Machine"
    NODE = "Node"
    HEALTH_CHECK_POLICY = "HealthCheckPolicy"


class ConditionStatus(Enum):
    """Valeur d'une condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionSeverity(Enum):
    """Sévérité d'une condition à False."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    NONE = ""


class SelectorOperator(Enum):
    """Opérateurs d'expression de sélecteur."""

    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


def utc_now() -> datetime:
    """Horloge par défaut (UTC)."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NamespacedName:
    """Identité d'un objet: (namespace, name). Sert aussi de work item."""

    namespace: str
    name: str

    def __str__(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}/{self.name}"


@dataclass
class OwnerReference:
    """Référence vers l'objet propriétaire."""

    api_version: str
    kind: str
    name: str
    uid: str


@dataclass
class ObjectMeta:
    """Métadonnées communes à tous les objets."""

    name: str
    namespace: str = ""
    uid: str = field(default_factory=lambda: str(uuid.uuid4()))
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    owner_references: List[OwnerReference] = field(default_factory=list)
    creation_timestamp: datetime = field(default_factory=utc_now)
    deletion_timestamp: Optional[datetime] = None
    resource_version: int = 0
    generation: int = 1


@dataclass
class Condition:
    """
    Condition de status (Machine, HealthCheckPolicy).

    last_transition_time n'est modifié que lorsque status change.
    """

    type: str
    status: ConditionStatus
    last_transition_time: datetime
    reason: str = ""
    severity: ConditionSeverity = ConditionSeverity.NONE
    message: str = ""


# ══════════════════════════════════════════════════════════════════════════════
# CLUSTER
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class ClusterSpec:
    paused: bool = False


@dataclass
class Cluster:
    """Cluster de gestion auquel appartiennent machines et policies."""

    kind: ClassVar[Kind] = Kind.CLUSTER

    metadata: ObjectMeta
    spec: ClusterSpec = field(default_factory=ClusterSpec)


# ══════════════════════════════════════════════════════════════════════════════
# MACHINE
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class NodeReference:
    """Référence vers le Node qui porte la Machine."""

    name: str
    uid: str = ""


@dataclass
class MachineSpec:
    cluster_name: str


@dataclass
class MachineStatus:
    node_ref: Optional[NodeReference] = None
    failure_reason: Optional[str] = None
    failure_message: Optional[str] = None
    conditions: List[Condition] = field(default_factory=list)


@dataclass
class Machine:
    """
    Membre de la flotte.

    Ce moteur ne fait que poser/retirer des conditions sur une Machine;
    il ne la crée ni ne la supprime jamais.
    """

    kind: ClassVar[Kind] = Kind.MACHINE

    metadata: ObjectMeta
    spec: MachineSpec
    status: MachineStatus = field(default_factory=MachineStatus)


# ══════════════════════════════════════════════════════════════════════════════
# NODE (cluster workload)
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class NodeCondition:
    type: str
    status: ConditionStatus
    last_transition_time: datetime
    reason: str = ""
    message: str = ""


@dataclass
class NodeStatus:
    conditions: List[NodeCondition] = field(default_factory=list)


@dataclass
class Node:
    """Node du cluster workload. Lecture seule pour ce moteur."""

    kind: ClassVar[Kind] = Kind.NODE

    metadata: ObjectMeta
    status: NodeStatus = field(default_factory=NodeStatus)

    def get_condition(self, condition_type: str) -> Optional[NodeCondition]:
        for condition in self.status.conditions:
            if condition.type == condition_type:
                return condition
        return None


# ══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK POLICY
# ══════════════════════════════════════════════════════════════════════════════


# maxUnhealthy: entier absolu (3) ou pourcentage ("40%")
IntOrPercent = Union[int, str]


@dataclass
class LabelSelectorRequirement:
    key: str
    operator: SelectorOperator
    values: List[str] = field(default_factory=list)


@dataclass
class LabelSelector:
    match_labels: Dict[str, str] = field(default_factory=dict)
    match_expressions: List[LabelSelectorRequirement] = field(default_factory=list)


@dataclass
class UnhealthyCondition:
    """
    Règle: un Node est unhealthy si sa condition `type` vaut `status`
    depuis au moins `timeout`.
    """

    type: str
    status: ConditionStatus
    timeout: timedelta


@dataclass
class HealthCheckPolicySpec:
    cluster_name: str
    selector: LabelSelector
    unhealthy_conditions: List[UnhealthyCondition] = field(default_factory=list)
    node_startup_timeout: Optional[timedelta] = None
    max_unhealthy: Optional[IntOrPercent] = None


@dataclass
class HealthCheckPolicyStatus:
    expected_machines: int = 0
    current_healthy: int = 0
    remediations_allowed: int = 0
    targets: List[str] = field(default_factory=list)
    selector: str = ""
    observed_generation: int = 0
    conditions: List[Condition] = field(default_factory=list)


@dataclass
class HealthCheckPolicy:
    """Règles de health-check d'un ensemble de machines d'un cluster."""

    kind: ClassVar[Kind] = Kind.HEALTH_CHECK_POLICY

    metadata: ObjectMeta
    spec: HealthCheckPolicySpec
    status: HealthCheckPolicyStatus = field(default_factory=HealthCheckPolicyStatus)


# Objets persistés dans le store
StoreObject = Union[Cluster, Machine, Node, HealthCheckPolicy]


def object_key(obj: StoreObject) -> NamespacedName:
    """Retourne l'identité (namespace, name) d'un objet."""
    return NamespacedName(namespace=obj.metadata.namespace, name=obj.metadata.name)


def is_paused(cluster: Cluster, obj: StoreObject) -> bool:
    """Vrai si le cluster est en pause ou si l'objet porte l'annotation de pause."""
    if cluster.spec.paused:
        return True
    return PAUSED_ANNOTATION in obj.metadata.annotations
