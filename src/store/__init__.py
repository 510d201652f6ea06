"""
Store

Accès au store d'objets et aux clusters workload:
- Lecture / patch / watch d'objets (interfaces et implémentation mémoire)
- Index des machines par nom de node
- Handle de patch par objet et portée d'écriture garantie
- Timeouts par appel
- Registre des clusters workload
"""

from .interfaces import (
    # Enums
    WatchEventType,
    # Data classes
    WatchNotification,
    # Types
    WatchHandler,
    IndexExtractor,
    PatchDiff,
    # Interfaces
    IObjectReader,
    IObjectStore,
    IClusterTracker,
    # Exceptions
    StoreError,
    NotFoundError,
    ConflictError,
    StoreTimeoutError,
    ClusterUnreachableError,
)
from .memory_store import InMemoryObjectStore
from .patch_helper import PatchHelper, PatchScope, AggregateError
from .timeouts import TimedObjectStore, InvalidTimeoutError
from .cluster_tracker import InMemoryClusterTracker

__all__ = [
    # Enums
    "WatchEventType",
    # Data classes
    "WatchNotification",
    # Types
    "WatchHandler",
    "IndexExtractor",
    "PatchDiff",
    # Interfaces
    "IObjectReader",
    "IObjectStore",
    "IClusterTracker",
    # Implementations
    "InMemoryObjectStore",
    "InMemoryClusterTracker",
    "TimedObjectStore",
    "PatchHelper",
    "PatchScope",
    # Exceptions
    "StoreError",
    "NotFoundError",
    "ConflictError",
    "StoreTimeoutError",
    "ClusterUnreachableError",
    "AggregateError",
    "InvalidTimeoutError",
]
