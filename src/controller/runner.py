"""
Controller - Runner

Pool de workers de la boucle de contrôle.

    watches (cluster, machine, policy, nodes distants) -> EventRouter
    -> WorkQueue -> N workers -> ReconciliationDriver

Chaque passe s'exécute sous un correlation_id neuf. Une passe en erreur
est re-planifiée avec backoff exponentiel par item; une passe réussie
remet le backoff à zéro et honore requeue_after.
"""

import asyncio
import dataclasses
from typing import Callable, List, Optional

from src.api.types import (
    MACHINE_NODE_NAME_INDEX,
    Kind,
    NamespacedName,
    utc_now,
)
from src.core.interfaces import ControllerConfig
from src.events.recorder import EventRecorder
from src.logging.interfaces import LogConfig, LogLevel
from src.logging.structured_logger import StructuredLogger
from src.observability.correlation import CorrelationManager
from src.store.interfaces import (
    IClusterTracker,
    IObjectStore,
    WatchHandler,
    WatchNotification,
)
from src.store.timeouts import TimedObjectStore

from .event_router import (
    ChangeNotification,
    ClusterChanged,
    EventRouter,
    MachineChanged,
    NodeChanged,
    PolicyChanged,
    machine_node_names,
)
from .interfaces import Dependencies, IReconciler, Result, WorkQueueShutDownError
from .rate_limiter import ItemExponentialRateLimiter
from .reconciler import ReconciliationDriver
from .workqueue import WorkQueue


class ControllerAlreadyStartedError(Exception):
    """start() appelé deux fois."""

    pass


def build_dependencies(
    store: IObjectStore,
    tracker: IClusterTracker,
    config: Optional[ControllerConfig] = None,
    output_handler: Optional[Callable[[str], None]] = None,
    clock=utc_now,
) -> Dependencies:
    """
    Construit les dépendances à partir de la configuration: store borné
    en durée, logger structuré et enregistreur d'événements.
    """
    config = config or ControllerConfig()
    logger = StructuredLogger(
        config.controller_name,
        config=LogConfig(min_level=LogLevel(config.log_level)),
        output_handler=output_handler,
    )
    return Dependencies(
        store=TimedObjectStore(store, config.store_call_timeout_seconds),
        tracker=tracker,
        recorder=EventRecorder(logger, history_size=config.event_history_size, clock=clock),
        logger=logger,
        config=config,
        clock=clock,
    )


class ControllerRunner:
    """
    Contrôleur de health checks.

    Example:
        runner = ControllerRunner(build_dependencies(store, tracker))
        await runner.start()
        ...
        await runner.stop()
    """

    def __init__(
        self,
        deps: Dependencies,
        reconciler: Optional[IReconciler] = None,
        queue: Optional[WorkQueue] = None,
    ) -> None:
        if deps.node_handler_factory is None:
            deps = dataclasses.replace(deps, node_handler_factory=self.node_handler_for)

        self._deps = deps
        self._router = EventRouter(deps.store, deps.logger)
        self._reconciler = reconciler or ReconciliationDriver(deps)
        self._queue = queue or WorkQueue(
            ItemExponentialRateLimiter(
                deps.config.backoff_initial_delay_seconds,
                deps.config.backoff_max_delay_seconds,
            )
        )
        self._correlation = CorrelationManager()
        self._workers: List[asyncio.Task] = []
        self._watches_registered = False

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    @property
    def deps(self) -> Dependencies:
        return self._deps

    # ──────────────────────────────────────────────────────────────────────────
    # Watches
    # ──────────────────────────────────────────────────────────────────────────

    def setup_watches(self) -> None:
        """Déclare l'index des machines par node et les watches locaux."""
        if self._watches_registered:
            return

        store = self._deps.store
        store.add_index(Kind.MACHINE, MACHINE_NODE_NAME_INDEX, machine_node_names)
        store.watch(Kind.HEALTH_CHECK_POLICY, self._on_policy)
        store.watch(Kind.CLUSTER, self._on_cluster)
        store.watch(Kind.MACHINE, self._on_machine)
        self._watches_registered = True

    async def _on_policy(self, notification: WatchNotification) -> None:
        await self.enqueue(PolicyChanged(notification.obj))

    async def _on_cluster(self, notification: WatchNotification) -> None:
        await self.enqueue(ClusterChanged(notification.obj))

    async def _on_machine(self, notification: WatchNotification) -> None:
        await self.enqueue(MachineChanged(notification.obj))

    def node_handler_for(self, cluster_key: NamespacedName) -> WatchHandler:
        """Handler des notifications Node d'un cluster workload."""

        async def on_node(notification: WatchNotification) -> None:
            await self.enqueue(NodeChanged(notification.obj, cluster_key))

        return on_node

    async def enqueue(self, notification: ChangeNotification) -> List[NamespacedName]:
        """Route une notification et ajoute les work items produits."""
        keys = await self._router.route(notification)
        for key in keys:
            self._queue.add(key)
        return keys

    # ──────────────────────────────────────────────────────────────────────────
    # Workers
    # ──────────────────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """
        Démarre les workers.

        Raises:
            ControllerAlreadyStartedError: Workers déjà démarrés
            WorkQueueShutDownError: File déjà arrêtée
        """
        if self._workers:
            raise ControllerAlreadyStartedError("controller is already started")
        if self._queue.shutting_down:
            raise WorkQueueShutDownError("cannot start on a shut down work queue")

        self.setup_watches()
        for index in range(self._deps.config.workers):
            self._workers.append(asyncio.create_task(self._worker(index)))

        self._deps.logger.info(
            "Starting workers",
            controller=self._deps.config.controller_name,
            workers=self._deps.config.workers,
        )

    async def stop(self) -> None:
        """Arrête la file et attend la fin des passes en cours."""
        self._queue.shut_down()
        if self._workers:
            await asyncio.gather(*self._workers)
        self._workers = []
        self._deps.logger.info("Stopped workers", controller=self._deps.config.controller_name)

    async def _worker(self, index: int) -> None:
        while True:
            try:
                key = await self._queue.get()
            except WorkQueueShutDownError:
                return
            try:
                await self.process_item(key)
            finally:
                self._queue.done(key)

    async def process_item(self, key: NamespacedName) -> Optional[Result]:
        """
        Exécute une passe et planifie la suivante.

        Returns:
            Result de la passe, None si elle a échoué
        """
        with self._correlation.scope():
            try:
                result = await self._reconciler.reconcile(key)
            except Exception as e:
                self._deps.logger.error(
                    "Reconciler error",
                    resource=str(key),
                    error=str(e),
                    error_type=type(e).__name__,
                    requeues=self._queue.num_requeues(key),
                )
                self._queue.add_rate_limited(key)
                return None

        if result.requeue_after is not None:
            self._queue.forget(key)
            self._queue.add_after(key, result.requeue_after.total_seconds())
        elif result.requeue:
            self._queue.add_rate_limited(key)
        else:
            self._queue.forget(key)
        return result
