"""
Observability - Interfaces

Identifiant de corrélation d'une passe de réconciliation.

Chaque passe (un élément de la file de travail traité par un worker)
reçoit un UUID unique, porté par une ContextVar: toutes les entrées de
log et tous les événements émis pendant la passe le partagent.
"""

from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import ContextManager, Optional


# Context variable pour propagation automatique entre coroutines
correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


class ICorrelationManager(ABC):
    """
    Interface gestion correlation IDs.

    Responsabilités:
        - Génération d'UUID uniques
        - Gestion du contexte courant
        - Portée d'une passe de réconciliation
    """

    @abstractmethod
    def generate(self) -> str:
        """
        Génère un UUID unique pour correlation.

        Returns:
            UUID v4 sous forme de string
        """
        pass

    @abstractmethod
    def get_current(self) -> Optional[str]:
        """
        Retourne le correlation_id courant du contexte.

        Returns:
            correlation_id ou None si non défini
        """
        pass

    @abstractmethod
    def set_current(self, correlation_id: str) -> None:
        """
        Définit le correlation_id dans le contexte.

        Args:
            correlation_id: ID à définir
        """
        pass

    @abstractmethod
    def scope(self, correlation_id: Optional[str] = None) -> ContextManager[str]:
        """
        Portée d'une passe: fixe un correlation_id puis restaure le précédent.

        Args:
            correlation_id: ID existant ou None pour en générer un
        """
        pass
