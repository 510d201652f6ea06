"""
Observability

Correlation IDs des passes de réconciliation:
- Un UUID unique par passe
- Propagé par ContextVar à tous les logs et événements de la passe
"""

from .interfaces import (
    # Context variable
    correlation_id_var,
    # Interfaces
    ICorrelationManager,
)
from .correlation import (
    CorrelationManager,
    UUID_PATTERN,
)

__all__ = [
    "correlation_id_var",
    "ICorrelationManager",
    "CorrelationManager",
    "UUID_PATTERN",
]
