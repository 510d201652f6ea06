"""
Observability - Correlation ID Management

Génère et propage le correlation_id d'une passe de réconciliation via
ContextVar. Chaque tâche asyncio hérite d'une copie du contexte: deux
workers concurrents ne partagent jamais leur identifiant.
"""

import re
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from .interfaces import ICorrelationManager, correlation_id_var


# UUID v4 regex pattern
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class CorrelationManager(ICorrelationManager):
    """
    Gestion des correlation IDs.

    Example:
        manager = CorrelationManager()
        with manager.scope() as correlation_id:
            await driver.reconcile(item)
    """

    def generate(self) -> str:
        """Génère un UUID v4 unique."""
        return str(uuid.uuid4())

    def get_current(self) -> Optional[str]:
        """Retourne le correlation_id courant ou None."""
        return correlation_id_var.get()

    def set_current(self, correlation_id: str) -> None:
        """
        Définit le correlation_id dans le contexte.

        Raises:
            ValueError: Si correlation_id vide ou pas un UUID v4
        """
        if not correlation_id or not correlation_id.strip():
            raise ValueError("correlation_id cannot be empty")

        if not self.is_valid_uuid(correlation_id):
            raise ValueError(f"Invalid correlation_id format: {correlation_id}")

        correlation_id_var.set(correlation_id)

    @contextmanager
    def scope(self, correlation_id: Optional[str] = None) -> Iterator[str]:
        """
        Fixe un correlation_id pour la durée du bloc.

        Le correlation_id précédent est restauré en sortie, y compris
        sur exception.

        Raises:
            ValueError: Si correlation_id fourni invalide
        """
        if correlation_id is None:
            correlation_id = self.generate()
        elif not self.is_valid_uuid(correlation_id):
            raise ValueError(f"Invalid correlation_id format: {correlation_id}")

        token = correlation_id_var.set(correlation_id)
        try:
            yield correlation_id
        finally:
            correlation_id_var.reset(token)

    def clear(self) -> None:
        """Nettoie le contexte courant."""
        correlation_id_var.set(None)

    def is_valid_uuid(self, value: str) -> bool:
        """Vérifie si une valeur est un UUID v4 valide."""
        if not value:
            return False
        return bool(UUID_PATTERN.match(value))
