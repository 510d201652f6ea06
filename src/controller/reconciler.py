"""
Controller - Reconciliation Driver

Une passe par HealthCheckPolicy:

    lecture policy -> lecture cluster -> arrêt si en pause -> portée de patch
    -> label et owner reference -> watch des nodes du cluster -> cibles
    -> évaluation -> admission -> status policy -> signalement -> requeue

Le status de la policy est patché en sortie de portée sur tous les
chemins, erreur comprise. Policy ou cluster introuvable: passe terminée
sans erreur. Toute autre erreur remonte (ReconcileError) pour un retry
avec backoff, après un événement ReconcileError sur la policy.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from src.api.types import (
    API_VERSION,
    CLUSTER_NAME_LABEL,
    Cluster,
    HealthCheckPolicy,
    Kind,
    NamespacedName,
    OwnerReference,
    is_paused,
    object_key,
)
from src.events.interfaces import RECONCILE_ERROR_REASON, EventType
from src.healthcheck.health_evaluator import HealthEvaluator
from src.healthcheck.interfaces import HealthEvaluation, TargetResolutionError
from src.healthcheck.target_resolver import TargetResolver
from src.logging.structured_logger import ContextualLogger
from src.remediation.admission import AdmissionController
from src.remediation.interfaces import AdmissionDecision, RemediationPatchError
from src.remediation.signaler import RemediationSignaler
from src.store.interfaces import NotFoundError, StoreError
from src.store.patch_helper import AggregateError, PatchScope

from .interfaces import (
    AggregateReconcileError,
    Dependencies,
    IReconciler,
    ReconcileError,
    Result,
)


# Nom du watch des nodes d'un cluster workload
NODE_WATCH_NAME: str = "machinehealthcheck-watchNodes"


class ReconciliationDriver(IReconciler):
    """
    Orchestration d'une passe de réconciliation.

    Sans état entre deux passes: tout est relu à chaque appel.

    Example:
        driver = ReconciliationDriver(deps)
        result = await driver.reconcile(NamespacedName("default", "workers-mhc"))
    """

    def __init__(self, deps: Dependencies) -> None:
        self._deps = deps
        self._resolver = TargetResolver(deps.store, deps.tracker, deps.logger)
        self._evaluator = HealthEvaluator(
            timedelta(seconds=deps.config.default_node_startup_timeout_seconds)
        )
        self._admission = AdmissionController(deps.logger)
        self._signaler = RemediationSignaler(deps.recorder, deps.logger)

    async def reconcile(self, key: NamespacedName) -> Result:
        store = self._deps.store
        log = ContextualLogger(self._deps.logger, resource=str(key))

        try:
            policy: HealthCheckPolicy = await store.get(Kind.HEALTH_CHECK_POLICY, key)
        except NotFoundError:
            log.debug("Health check policy not found, skipping")
            return Result()
        except StoreError as e:
            log.error("Failed to fetch health check policy", error=str(e))
            raise ReconcileError(key, str(e)) from e

        cluster_key = NamespacedName(key.namespace, policy.spec.cluster_name)
        try:
            cluster: Cluster = await store.get(Kind.CLUSTER, cluster_key)
        except NotFoundError:
            log.debug("Cluster not found, skipping", cluster=str(cluster_key))
            return Result()
        except StoreError as e:
            self._record_error(policy, e)
            raise ReconcileError(key, str(e)) from e

        if is_paused(cluster, policy):
            log.debug("Reconciliation is paused for this object")
            return Result()

        try:
            async with PatchScope(policy, store):
                self._ensure_linkage(policy, cluster)
                result = await self._reconcile(policy, cluster)
        except AggregateError as e:
            self._record_error(policy, e)
            raise AggregateReconcileError(key, e.errors) from e
        except (StoreError, TargetResolutionError, RemediationPatchError) as e:
            self._record_error(policy, e)
            raise ReconcileError(key, str(e)) from e

        return result

    async def _reconcile(self, policy: HealthCheckPolicy, cluster: Cluster) -> Result:
        await self._watch_cluster_nodes(cluster)

        targets = await self._resolver.resolve(policy)
        now = self._deps.clock()
        evaluation = self._evaluator.evaluate(targets, policy, now)
        decision = self._admission.decide(
            len(targets), evaluation.current_healthy, policy.spec.max_unhealthy
        )

        self._deps.logger.debug(
            "Health checking targets",
            resource=str(object_key(policy)),
            targets=len(targets),
            healthy=evaluation.current_healthy,
            unhealthy=len(evaluation.unhealthy),
            pending=len(evaluation.pending),
            remediation_allowed=decision.allowed,
        )

        self._signaler.update_policy_status(policy, targets, evaluation, decision, now)
        await self._signaler.signal(policy, evaluation, decision, now)

        return self._next_requeue(evaluation, decision, now)

    def _ensure_linkage(self, policy: HealthCheckPolicy, cluster: Cluster) -> None:
        """Label de cluster et owner reference vers le cluster (sans doublon)."""
        policy.metadata.labels[CLUSTER_NAME_LABEL] = policy.spec.cluster_name

        for ref in policy.metadata.owner_references:
            if ref.kind == Kind.CLUSTER.value and ref.name == cluster.metadata.name:
                ref.uid = cluster.metadata.uid
                return

        policy.metadata.owner_references.append(
            OwnerReference(
                api_version=API_VERSION,
                kind=Kind.CLUSTER.value,
                name=cluster.metadata.name,
                uid=cluster.metadata.uid,
            )
        )

    async def _watch_cluster_nodes(self, cluster: Cluster) -> None:
        factory = self._deps.node_handler_factory
        if factory is None:
            return

        cluster_key = NamespacedName(cluster.metadata.namespace, cluster.metadata.name)
        created = await self._deps.tracker.watch(
            cluster_key, Kind.NODE, NODE_WATCH_NAME, factory(cluster_key)
        )
        if created:
            self._deps.logger.info("Watching nodes of workload cluster", resource=str(cluster_key))

    def _next_requeue(
        self,
        evaluation: HealthEvaluation,
        decision: AdmissionDecision,
        now: datetime,
    ) -> Result:
        delays: List[timedelta] = []

        pending_delay: Optional[timedelta] = evaluation.requeue_after(now)
        if pending_delay is not None:
            delays.append(pending_delay)

        if not decision.allowed:
            delays.append(timedelta(seconds=self._deps.config.restricted_requeue_after_seconds))

        if not delays:
            return Result()
        return Result(requeue_after=min(delays))

    def _record_error(self, policy: HealthCheckPolicy, error: BaseException) -> None:
        self._deps.recorder.event(policy, EventType.WARNING, RECONCILE_ERROR_REASON, str(error))
        self._deps.logger.error(
            "Failed to reconcile health check policy",
            resource=str(object_key(policy)),
            error=str(error),
        )
