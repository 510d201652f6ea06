"""
API - Conditions

Types de conditions, raisons et helpers de manipulation.

La condition de remédiation (OwnerRemediated à False, raison
WaitingForRemediation) est le seul contrat avec le contrôleur de
remédiation en aval.
"""

from datetime import datetime
from typing import List, Optional

from .types import Condition, ConditionSeverity, ConditionStatus


# Condition posée sur une Machine admise pour remédiation
REMEDIATION_REQUESTED_CONDITION: str = "OwnerRemediated"
WAITING_FOR_REMEDIATION_REASON: str = "WaitingForRemediation"

# Status observé du health-check sur une Machine
HEALTH_CHECK_SUCCEEDED_CONDITION: str = "HealthCheckSucceeded"
NODE_STARTUP_TIMEOUT_REASON: str = "NodeStartupTimeout"
UNHEALTHY_NODE_REASON: str = "UnhealthyNode"
NODE_NOT_FOUND_REASON: str = "NodeNotFound"
MACHINE_HAS_FAILURE_REASON: str = "MachineHasFailure"

# Condition d'admission sur la HealthCheckPolicy
REMEDIATION_ALLOWED_CONDITION: str = "RemediationAllowed"
TOO_MANY_UNHEALTHY_REASON: str = "TooManyUnhealthy"


def get_condition(conditions: List[Condition], condition_type: str) -> Optional[Condition]:
    """Retourne la condition de ce type, ou None."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def set_condition(conditions: List[Condition], new: Condition) -> None:
    """
    Ajoute ou remplace une condition.

    Si le status ne change pas, la date de transition existante est conservée
    pour qu'une passe sans changement ne produise aucun diff.
    """
    existing = get_condition(conditions, new.type)
    if existing is None:
        conditions.append(new)
        return

    if existing.status == new.status:
        new.last_transition_time = existing.last_transition_time

    existing.status = new.status
    existing.last_transition_time = new.last_transition_time
    existing.reason = new.reason
    existing.severity = new.severity
    existing.message = new.message


def mark_true(conditions: List[Condition], condition_type: str, now: datetime) -> None:
    set_condition(
        conditions,
        Condition(type=condition_type, status=ConditionStatus.TRUE, last_transition_time=now),
    )


def mark_false(
    conditions: List[Condition],
    condition_type: str,
    reason: str,
    severity: ConditionSeverity,
    message: str,
    now: datetime,
) -> None:
    set_condition(
        conditions,
        Condition(
            type=condition_type,
            status=ConditionStatus.FALSE,
            last_transition_time=now,
            reason=reason,
            severity=severity,
            message=message,
        ),
    )


def delete_condition(conditions: List[Condition], condition_type: str) -> bool:
    """
    Retire une condition.

    Returns:
        True si une condition a été retirée
    """
    for index, condition in enumerate(conditions):
        if condition.type == condition_type:
            del conditions[index]
            return True
    return False


def is_true(conditions: List[Condition], condition_type: str) -> bool:
    condition = get_condition(conditions, condition_type)
    return condition is not None and condition.status == ConditionStatus.TRUE


def is_false(conditions: List[Condition], condition_type: str) -> bool:
    condition = get_condition(conditions, condition_type)
    return condition is not None and condition.status == ConditionStatus.FALSE
