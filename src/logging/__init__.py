"""
Logging

Logging structuré du contrôleur:
- Une ligne JSON par entrée (timestamp ISO 8601 UTC, level, correlation_id,
  message, resource)
- correlation_id de la passe de réconciliation courante
- Masquage des identifiants d'accès aux clusters (kubeconfig, tokens)
- Tampon borné des dernières entrées pour inspection
"""

from .interfaces import (
    # Enums
    LogLevel,
    # Dataclasses
    LogEntry,
    LogConfig,
    # Interfaces
    IStructuredLogger,
    ISensitiveMasker,
)
from .sensitive_masker import (
    SensitiveMasker,
)
from .structured_logger import (
    StructuredLogger,
    ContextualLogger,
    # Exceptions
    MissingRequiredFieldError,
)

__all__ = [
    # Enums
    "LogLevel",
    # Dataclasses
    "LogEntry",
    "LogConfig",
    # Interfaces
    "IStructuredLogger",
    "ISensitiveMasker",
    # Implementations
    "SensitiveMasker",
    "StructuredLogger",
    "ContextualLogger",
    # Exceptions
    "MissingRequiredFieldError",
]
