"""
Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from typing import List

import pytest

from src.api.types import NamespacedName
from src.core.interfaces import ControllerConfig
from src.controller.interfaces import Dependencies
from src.events.recorder import EventRecorder
from src.logging.structured_logger import StructuredLogger
from src.store.cluster_tracker import InMemoryClusterTracker
from src.store.memory_store import InMemoryObjectStore

from tests.builders import CLUSTER_NAME, NAMESPACE, fixed_clock


@pytest.fixture
def log_lines() -> List[str]:
    """Lignes JSON émises par le logger de test."""
    return []


@pytest.fixture
def logger(log_lines: List[str]) -> StructuredLogger:
    """Logger structuré capturant sa sortie."""
    return StructuredLogger("test", output_handler=log_lines.append)


@pytest.fixture
def store() -> InMemoryObjectStore:
    """Store du cluster de gestion."""
    return InMemoryObjectStore()


@pytest.fixture
def workload_store() -> InMemoryObjectStore:
    """Store du cluster workload (nodes)."""
    return InMemoryObjectStore()


@pytest.fixture
def cluster_key() -> NamespacedName:
    return NamespacedName(NAMESPACE, CLUSTER_NAME)


@pytest.fixture
def tracker(workload_store: InMemoryObjectStore, cluster_key: NamespacedName) -> InMemoryClusterTracker:
    """Tracker avec le cluster workload de test enregistré."""
    t = InMemoryClusterTracker()
    t.register_cluster(cluster_key, workload_store)
    return t


@pytest.fixture
def recorder(logger: StructuredLogger) -> EventRecorder:
    return EventRecorder(logger, clock=fixed_clock())


@pytest.fixture
def config() -> ControllerConfig:
    return ControllerConfig(workers=2)


@pytest.fixture
def deps(
    store: InMemoryObjectStore,
    tracker: InMemoryClusterTracker,
    recorder: EventRecorder,
    logger: StructuredLogger,
    config: ControllerConfig,
) -> Dependencies:
    """Dépendances du contrôleur sur stores en mémoire et horloge fixe."""
    return Dependencies(
        store=store,
        tracker=tracker,
        recorder=recorder,
        logger=logger,
        config=config,
        clock=fixed_clock(),
    )
