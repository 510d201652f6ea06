"""
Controller

Boucle de contrôle du health-check des machines:
- EventRouter: notifications Cluster / Machine / Node / policy -> work items
- WorkQueue: file dédupliquée, ajouts différés et backoff par item
- ReconciliationDriver: une passe par HealthCheckPolicy
- ControllerRunner: pool de workers et câblage des watches
"""

from .interfaces import (
    # Data classes
    Result,
    Dependencies,
    # Interfaces
    IReconciler,
    # Exceptions
    ReconcileError,
    AggregateReconcileError,
    WorkQueueShutDownError,
)
from .event_router import (
    WatchKind,
    ClusterChanged,
    MachineChanged,
    NodeChanged,
    PolicyChanged,
    ChangeNotification,
    EventRouter,
    IncompleteRoutingError,
    machine_node_names,
)
from .rate_limiter import ItemExponentialRateLimiter
from .workqueue import WorkQueue
from .reconciler import ReconciliationDriver, NODE_WATCH_NAME
from .runner import ControllerRunner, ControllerAlreadyStartedError, build_dependencies

__all__ = [
    "Result",
    "Dependencies",
    "IReconciler",
    "ReconcileError",
    "AggregateReconcileError",
    "WorkQueueShutDownError",
    "WatchKind",
    "ClusterChanged",
    "MachineChanged",
    "NodeChanged",
    "PolicyChanged",
    "ChangeNotification",
    "EventRouter",
    "IncompleteRoutingError",
    "machine_node_names",
    "ItemExponentialRateLimiter",
    "WorkQueue",
    "ReconciliationDriver",
    "NODE_WATCH_NAME",
    "ControllerRunner",
    "ControllerAlreadyStartedError",
    "build_dependencies",
]
