"""
Health Check - Health Evaluator

Classe chaque cible en HEALTHY, UNHEALTHY ou PENDING.

Règles, dans l'ordre:
    1. Machine en échec (failure_reason / failure_message) -> UNHEALTHY
    2. node_ref renseigné mais Node introuvable -> UNHEALTHY
    3. Pas de Node: UNHEALTHY si creation + startup timeout est atteint,
       sinon PENDING jusqu'à cette échéance
    4. Node présent: UNHEALTHY si une condition vaut le status configuré
       depuis au moins son timeout; PENDING si elle le vaut depuis moins
       longtemps; HEALTHY sinon

Les échéances sont inclusives: à l'instant exact creation + timeout,
la cible est UNHEALTHY.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from src.api.conditions import (
    MACHINE_HAS_FAILURE_REASON,
    NODE_NOT_FOUND_REASON,
    NODE_STARTUP_TIMEOUT_REASON,
    UNHEALTHY_NODE_REASON,
)
from src.api.types import HealthCheckPolicy

from .interfaces import (
    HealthEvaluation,
    IHealthEvaluator,
    Target,
    TargetHealth,
    TargetVerdict,
)


class HealthEvaluator(IHealthEvaluator):
    """
    Évaluateur de santé. Pur: ne modifie ni les cibles ni le store.

    Example:
        evaluator = HealthEvaluator(default_node_startup_timeout=timedelta(minutes=10))
        evaluation = evaluator.evaluate(targets, policy, now)
        evaluation.requeue_after(now)
    """

    # Délai de démarrage si la policy n'en fixe pas
    DEFAULT_NODE_STARTUP_TIMEOUT: timedelta = timedelta(minutes=10)

    def __init__(self, default_node_startup_timeout: Optional[timedelta] = None) -> None:
        self._default_startup_timeout = (
            default_node_startup_timeout or self.DEFAULT_NODE_STARTUP_TIMEOUT
        )

    def startup_timeout(self, policy: HealthCheckPolicy) -> timedelta:
        """Délai de démarrage effectif de la policy."""
        if policy.spec.node_startup_timeout is not None:
            return policy.spec.node_startup_timeout
        return self._default_startup_timeout

    def evaluate(
        self,
        targets: List[Target],
        policy: HealthCheckPolicy,
        now: datetime,
    ) -> HealthEvaluation:
        evaluation = HealthEvaluation()
        startup_timeout = self.startup_timeout(policy)

        for target in targets:
            verdict = self.evaluate_target(target, policy, startup_timeout, now)
            if verdict.health == TargetHealth.HEALTHY:
                evaluation.healthy.append(verdict)
            elif verdict.health == TargetHealth.UNHEALTHY:
                evaluation.unhealthy.append(verdict)
            else:
                evaluation.pending.append(verdict)
                if evaluation.next_check_at is None or verdict.next_check < evaluation.next_check_at:
                    evaluation.next_check_at = verdict.next_check

        return evaluation

    def evaluate_target(
        self,
        target: Target,
        policy: HealthCheckPolicy,
        startup_timeout: timedelta,
        now: datetime,
    ) -> TargetVerdict:
        """Verdict d'une seule cible."""
        machine = target.machine

        if machine.status.failure_reason or machine.status.failure_message:
            return TargetVerdict(
                target=target,
                health=TargetHealth.UNHEALTHY,
                reason=MACHINE_HAS_FAILURE_REASON,
                message=(
                    f"FailureReason: {machine.status.failure_reason or ''}, "
                    f"FailureMessage: {machine.status.failure_message or ''}"
                ),
            )

        if target.node_missing:
            return TargetVerdict(
                target=target,
                health=TargetHealth.UNHEALTHY,
                reason=NODE_NOT_FOUND_REASON,
                message="Node not found",
            )

        if target.node is None:
            deadline = machine.metadata.creation_timestamp + startup_timeout
            if now >= deadline:
                return TargetVerdict(
                    target=target,
                    health=TargetHealth.UNHEALTHY,
                    reason=NODE_STARTUP_TIMEOUT_REASON,
                    message=f"Node failed to report startup in {startup_timeout}",
                )
            return TargetVerdict(
                target=target,
                health=TargetHealth.PENDING,
                reason=NODE_STARTUP_TIMEOUT_REASON,
                message="Waiting for node to appear",
                next_check=deadline,
            )

        next_check: Optional[datetime] = None
        pending_message = ""
        for rule in policy.spec.unhealthy_conditions:
            node_condition = target.node.get_condition(rule.type)
            if node_condition is None or node_condition.status != rule.status:
                continue

            deadline = node_condition.last_transition_time + rule.timeout
            if now >= deadline:
                return TargetVerdict(
                    target=target,
                    health=TargetHealth.UNHEALTHY,
                    reason=UNHEALTHY_NODE_REASON,
                    message=(
                        f"Condition {rule.type} on node is reporting status "
                        f"{rule.status.value} for more than {rule.timeout}"
                    ),
                )
            if next_check is None or deadline < next_check:
                next_check = deadline
                pending_message = (
                    f"Condition {rule.type} on node is reporting status "
                    f"{rule.status.value}, timeout at {deadline.isoformat()}"
                )

        if next_check is not None:
            return TargetVerdict(
                target=target,
                health=TargetHealth.PENDING,
                reason=UNHEALTHY_NODE_REASON,
                message=pending_message,
                next_check=next_check,
            )

        return TargetVerdict(target=target, health=TargetHealth.HEALTHY)
