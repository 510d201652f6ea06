"""
Health Check

Résolution et évaluation des cibles d'une HealthCheckPolicy:
- TargetResolver: machines sélectionnées + Node du cluster workload
- HealthEvaluator: HEALTHY / UNHEALTHY / PENDING et prochaine échéance
"""

from .interfaces import (
    # Enums
    TargetHealth,
    # Data classes
    Target,
    TargetVerdict,
    HealthEvaluation,
    # Interfaces
    ITargetResolver,
    IHealthEvaluator,
    # Exceptions
    TargetResolutionError,
)
from .target_resolver import TargetResolver
from .health_evaluator import HealthEvaluator

__all__ = [
    "TargetHealth",
    "Target",
    "TargetVerdict",
    "HealthEvaluation",
    "ITargetResolver",
    "IHealthEvaluator",
    "TargetResolutionError",
    "TargetResolver",
    "HealthEvaluator",
]
