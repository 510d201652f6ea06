"""
Core

Configuration du contrôleur:
- ControllerConfig (pydantic): workers, délais de requeue et de backoff,
  timeout des appels au store, délai de démarrage par défaut, logging
- ConfigLoader: chargement YAML et validation
"""

from .interfaces import ControllerConfig, IConfigLoader, LOG_LEVELS
from .config_loader import ConfigLoader, ConfigError

__all__ = [
    "ControllerConfig",
    "IConfigLoader",
    "LOG_LEVELS",
    "ConfigLoader",
    "ConfigError",
]
