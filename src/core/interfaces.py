"""
Core Interfaces
Configuration du contrôleur de health checks.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR", "CRITICAL")


class ControllerConfig(BaseModel):
    """Configuration du contrôleur (workers, délais, logging)."""

    controller_name: str = "machinehealthcheck-controller"
    workers: int = Field(default=10, ge=1, le=256)

    # Délai de re-passe quand la remédiation est refusée
    restricted_requeue_after_seconds: float = Field(default=30.0, gt=0)

    # Borne de chaque appel au store
    store_call_timeout_seconds: float = Field(default=10.0, gt=0, le=300)

    # Backoff exponentiel par work item en cas d'erreur
    backoff_initial_delay_seconds: float = Field(default=0.005, gt=0)
    backoff_max_delay_seconds: float = Field(default=300.0, gt=0)

    # Délai de démarrage d'un Node si la policy n'en fixe pas
    default_node_startup_timeout_seconds: float = Field(default=600.0, gt=0)

    log_level: str = "INFO"
    event_history_size: int = Field(default=500, ge=1)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return normalized

    @field_validator("backoff_max_delay_seconds")
    @classmethod
    def _check_backoff_bounds(cls, value: float, info) -> float:
        initial = info.data.get("backoff_initial_delay_seconds")
        if initial is not None and value < initial:
            raise ValueError("backoff_max_delay_seconds must be >= backoff_initial_delay_seconds")
        return value


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge et valide la configuration du contrôleur."""

    @abstractmethod
    async def load(self, path: str) -> ControllerConfig:
        """
        Charge la configuration depuis un fichier YAML.

        Raises:
            ConfigError: Fichier absent, YAML invalide ou valeurs invalides
        """
        pass

    @abstractmethod
    def from_dict(self, data: dict[str, Any]) -> ControllerConfig:
        """Valide une configuration déjà chargée."""
        pass
