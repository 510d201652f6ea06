"""
API

Modèle de données du moteur de health-check:
- Objets Cluster, Machine, Node, HealthCheckPolicy
- Conditions et raisons (contrat avec le contrôleur de remédiation)
- Sélecteurs de labels
- Résolution entier/pourcentage (maxUnhealthy)
"""

from .types import (
    # Constantes
    API_VERSION,
    CLUSTER_NAME_LABEL,
    PAUSED_ANNOTATION,
    MACHINE_NODE_NAME_INDEX,
    # Enums
    Kind,
    ConditionStatus,
    ConditionSeverity,
    SelectorOperator,
    # Data classes
    NamespacedName,
    OwnerReference,
    ObjectMeta,
    Condition,
    Cluster,
    ClusterSpec,
    Machine,
    MachineSpec,
    MachineStatus,
    NodeReference,
    Node,
    NodeStatus,
    NodeCondition,
    LabelSelector,
    LabelSelectorRequirement,
    UnhealthyCondition,
    HealthCheckPolicy,
    HealthCheckPolicySpec,
    HealthCheckPolicyStatus,
    # Types
    IntOrPercent,
    StoreObject,
    # Helpers
    object_key,
    is_paused,
    utc_now,
)
from .intstr import resolve_int_or_percent, InvalidIntOrPercentError

__all__ = [
    # Constantes
    "API_VERSION",
    "CLUSTER_NAME_LABEL",
    "PAUSED_ANNOTATION",
    "MACHINE_NODE_NAME_INDEX",
    # Enums
    "Kind",
    "ConditionStatus",
    "ConditionSeverity",
    "SelectorOperator",
    # Data classes
    "NamespacedName",
    "OwnerReference",
    "ObjectMeta",
    "Condition",
    "Cluster",
    "ClusterSpec",
    "Machine",
    "MachineSpec",
    "MachineStatus",
    "NodeReference",
    "Node",
    "NodeStatus",
    "NodeCondition",
    "LabelSelector",
    "LabelSelectorRequirement",
    "UnhealthyCondition",
    "HealthCheckPolicy",
    "HealthCheckPolicySpec",
    "HealthCheckPolicyStatus",
    # Types
    "IntOrPercent",
    "StoreObject",
    # Helpers
    "object_key",
    "is_paused",
    "utc_now",
    "resolve_int_or_percent",
    # Exceptions
    "InvalidIntOrPercentError",
]
