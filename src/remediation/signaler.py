"""
Remediation - Signaler

Applique les verdicts d'une passe:
    - HEALTHY: HealthCheckSucceeded True, condition de remédiation retirée
    - UNHEALTHY: HealthCheckSucceeded False (raison du verdict); si
      l'admission est accordée, OwnerRemediated False
      (WaitingForRemediation, Warning), puis événement MachineMarkedUnhealthy
      une fois le patch accepté
    - PENDING: condition de remédiation retirée, événement DetectedUnhealthy

Chaque machine modifiée est persistée via son handle de patch. Les échecs
de patch sont collectés puis remontés ensemble: les autres machines sont
tout de même patchées.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from src.api import selectors
from src.api.conditions import (
    HEALTH_CHECK_SUCCEEDED_CONDITION,
    REMEDIATION_ALLOWED_CONDITION,
    REMEDIATION_REQUESTED_CONDITION,
    TOO_MANY_UNHEALTHY_REASON,
    WAITING_FOR_REMEDIATION_REASON,
    delete_condition,
    mark_false,
    mark_true,
)
from src.api.types import ConditionSeverity, HealthCheckPolicy, NamespacedName, object_key
from src.events.interfaces import (
    DETECTED_UNHEALTHY_REASON,
    MACHINE_MARKED_UNHEALTHY_REASON,
    REMEDIATION_RESTRICTED_REASON,
    EventType,
    IEventRecorder,
)
from src.healthcheck.interfaces import HealthEvaluation, Target, TargetVerdict
from src.logging.interfaces import IStructuredLogger
from src.store.interfaces import StoreError

from .interfaces import AdmissionDecision, IRemediationSignaler, RemediationPatchError


class RemediationSignaler(IRemediationSignaler):
    """
    Signalement de remédiation.

    Example:
        signaler = RemediationSignaler(recorder, logger)
        await signaler.signal(policy, evaluation, decision, now)
        signaler.update_policy_status(policy, targets, evaluation, decision, now)
    """

    def __init__(
        self,
        recorder: IEventRecorder,
        logger: Optional[IStructuredLogger] = None,
    ) -> None:
        """
        Args:
            recorder: Enregistreur d'événements
            logger: Logger structuré (optionnel)
        """
        self._recorder = recorder
        self._logger = logger

    async def signal(
        self,
        policy: HealthCheckPolicy,
        evaluation: HealthEvaluation,
        decision: AdmissionDecision,
        now: datetime,
    ) -> None:
        failures: List[Tuple[NamespacedName, Exception]] = []

        if not decision.allowed:
            self._recorder.event(
                policy,
                EventType.WARNING,
                REMEDIATION_RESTRICTED_REASON,
                (
                    f"Remediation restricted due to exceeded number of unhealthy machines "
                    f"(total: {decision.expected}, unhealthy: {decision.unhealthy}, "
                    f"maxUnhealthy: {decision.max_unhealthy})"
                ),
            )
            self._log_info(
                "Short-circuiting remediation",
                policy=policy,
                total_target_count=decision.expected,
                max_unhealthy=str(decision.max_unhealthy),
                unhealthy_target_count=decision.unhealthy,
            )

        for verdict in evaluation.healthy:
            machine = verdict.target.machine
            mark_true(machine.status.conditions, HEALTH_CHECK_SUCCEEDED_CONDITION, now)
            delete_condition(machine.status.conditions, REMEDIATION_REQUESTED_CONDITION)
            await self._patch(verdict.target, failures)

        for verdict in evaluation.unhealthy:
            self._mark_unhealthy(verdict, decision, now)
            if await self._patch(verdict.target, failures) and decision.allowed:
                self._recorder.event(
                    verdict.target.machine,
                    EventType.NORMAL,
                    MACHINE_MARKED_UNHEALTHY_REASON,
                    f"Machine {verdict.target} has been marked as unhealthy",
                )

        for verdict in evaluation.pending:
            if delete_condition(
                verdict.target.machine.status.conditions, REMEDIATION_REQUESTED_CONDITION
            ):
                await self._patch(verdict.target, failures)
            self._recorder.event(
                verdict.target.machine,
                EventType.NORMAL,
                DETECTED_UNHEALTHY_REASON,
                f"Machine {verdict.target} has unhealthy node",
            )
            self._log_info(
                "Target is likely to go unhealthy",
                policy=policy,
                target=str(verdict.target),
                next_check=verdict.next_check.isoformat() if verdict.next_check else None,
            )

        if failures:
            raise RemediationPatchError(failures)

    def _mark_unhealthy(
        self,
        verdict: TargetVerdict,
        decision: AdmissionDecision,
        now: datetime,
    ) -> None:
        machine = verdict.target.machine
        mark_false(
            machine.status.conditions,
            HEALTH_CHECK_SUCCEEDED_CONDITION,
            verdict.reason,
            ConditionSeverity.WARNING,
            verdict.message,
            now,
        )

        if not decision.allowed:
            return

        mark_false(
            machine.status.conditions,
            REMEDIATION_REQUESTED_CONDITION,
            WAITING_FOR_REMEDIATION_REASON,
            ConditionSeverity.WARNING,
            "",
            now,
        )

    async def _patch(
        self,
        target: Target,
        failures: List[Tuple[NamespacedName, Exception]],
    ) -> bool:
        """Patche la machine; False et échec collecté si le store refuse."""
        try:
            await target.patch_helper.patch()
        except StoreError as e:
            failures.append((target.key, e))
            if self._logger is not None:
                self._logger.error(
                    "Failed to patch machine status",
                    resource=str(target.key),
                    error=str(e),
                )
            return False
        return True

    def update_policy_status(
        self,
        policy: HealthCheckPolicy,
        targets: List[Target],
        evaluation: HealthEvaluation,
        decision: AdmissionDecision,
        now: datetime,
    ) -> None:
        status = policy.status
        status.expected_machines = len(targets)
        status.current_healthy = evaluation.current_healthy
        status.remediations_allowed = decision.remediations_allowed
        status.targets = [t.machine.metadata.name for t in targets]
        status.selector = selectors.to_string(policy.spec.selector)
        status.observed_generation = policy.metadata.generation

        if decision.allowed:
            mark_true(status.conditions, REMEDIATION_ALLOWED_CONDITION, now)
        else:
            mark_false(
                status.conditions,
                REMEDIATION_ALLOWED_CONDITION,
                TOO_MANY_UNHEALTHY_REASON,
                ConditionSeverity.WARNING,
                decision.reason,
                now,
            )

    def _log_info(self, message: str, policy: HealthCheckPolicy, **extra) -> None:
        if self._logger is None:
            return
        self._logger.info(message, resource=str(object_key(policy)), **extra)
