"""
Remediation - Admission Controller

Disjoncteur de remédiation: bloque toute remédiation d'une passe quand
trop de machines sont simultanément unhealthy (panne de masse).

Règles:
    - unhealthy = expected - current_healthy (PENDING compte comme unhealthy)
    - maxUnhealthy absent: toujours admis
    - pourcentage résolu par partie entière inférieure ("50%" de 3 -> 1)
    - admis si unhealthy <= borne résolue
    - maxUnhealthy invalide: refus
"""

from typing import Optional

from src.api.intstr import InvalidIntOrPercentError, resolve_int_or_percent
from src.api.types import IntOrPercent
from src.logging.interfaces import IStructuredLogger

from .interfaces import AdmissionDecision, IAdmissionController, InvalidMaxUnhealthyError


def resolve_max_unhealthy(max_unhealthy: IntOrPercent, expected: int) -> int:
    """
    Résout maxUnhealthy contre le nombre de cibles.

    Raises:
        InvalidMaxUnhealthyError: Valeur ni entier >= 0 ni "<entier>%"
    """
    try:
        return resolve_int_or_percent(max_unhealthy, expected)
    except InvalidIntOrPercentError as e:
        raise InvalidMaxUnhealthyError(max_unhealthy) from e


class AdmissionController(IAdmissionController):
    """
    Disjoncteur de remédiation.

    Sans état: la décision ne dépend que des compteurs de la passe.

    Example:
        controller = AdmissionController()
        decision = controller.decide(expected=3, current_healthy=1, max_unhealthy=1)
        decision.allowed  # False
    """

    def __init__(self, logger: Optional[IStructuredLogger] = None) -> None:
        self._logger = logger

    def decide(
        self,
        expected: int,
        current_healthy: int,
        max_unhealthy: Optional[IntOrPercent],
    ) -> AdmissionDecision:
        if expected < 0 or current_healthy < 0 or current_healthy > expected:
            raise ValueError(
                f"inconsistent counts: expected={expected}, healthy={current_healthy}"
            )

        unhealthy = expected - current_healthy

        if max_unhealthy is None:
            return AdmissionDecision(
                allowed=True,
                expected=expected,
                current_healthy=current_healthy,
                unhealthy=unhealthy,
                max_unhealthy=None,
                resolved_max=None,
                remediations_allowed=current_healthy,
            )

        try:
            resolved = resolve_max_unhealthy(max_unhealthy, expected)
        except InvalidMaxUnhealthyError as e:
            if self._logger is not None:
                self._logger.warn(
                    "Denying remediation: maxUnhealthy cannot be resolved",
                    max_unhealthy=str(max_unhealthy),
                    error=str(e),
                )
            return AdmissionDecision(
                allowed=False,
                expected=expected,
                current_healthy=current_healthy,
                unhealthy=unhealthy,
                max_unhealthy=max_unhealthy,
                resolved_max=None,
                remediations_allowed=0,
                reason=str(e),
            )

        allowed = unhealthy <= resolved
        reason = ""
        if not allowed:
            reason = (
                f"Remediation is not allowed, the number of not started or unhealthy "
                f"machines exceeds maxUnhealthy (total: {expected}, unhealthy: {unhealthy}, "
                f"maxUnhealthy: {max_unhealthy})"
            )

        return AdmissionDecision(
            allowed=allowed,
            expected=expected,
            current_healthy=current_healthy,
            unhealthy=unhealthy,
            max_unhealthy=max_unhealthy,
            resolved_max=resolved,
            remediations_allowed=max(0, resolved - unhealthy),
            reason=reason,
        )
