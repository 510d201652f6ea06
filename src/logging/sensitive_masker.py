"""
Logging - Sensitive Masker

Masquage des identifiants d'accès aux clusters (kubeconfig, tokens,
clés client) dans les données supplémentaires des logs.
"""

from typing import Any, Dict, List, Optional

from .interfaces import ISensitiveMasker


class SensitiveMasker(ISensitiveMasker):
    """
    Masquage récursif des données sensibles.

    Example:
        masker = SensitiveMasker()
        masker.mask({"kubeconfig": "apiVersion: v1 ..."})
        # {"kubeconfig": "***MASKED***"}
    """

    def __init__(self, additional_patterns: Optional[List[str]] = None) -> None:
        """
        Args:
            additional_patterns: Patterns supplémentaires à masquer
        """
        self._patterns: List[str] = [p.lower() for p in self.SENSITIVE_PATTERNS]
        for pattern in additional_patterns or []:
            if pattern and pattern.lower() not in self._patterns:
                self._patterns.append(pattern.lower())

    @property
    def patterns(self) -> List[str]:
        """Retourne les patterns sensibles configurés."""
        return list(self._patterns)

    def mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Masque récursivement les données sensibles.

        Comportement:
            - Clés contenant un pattern sensible → valeur masquée
            - Valeurs dict → récursion
            - Valeurs list → masque chaque élément
        """
        if not isinstance(data, dict):
            return data

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if self.is_sensitive_key(key):
                result[key] = self.MASK_VALUE
            elif isinstance(value, dict):
                result[key] = self.mask(value)
            elif isinstance(value, list):
                result[key] = self._mask_list(value)
            else:
                result[key] = value

        return result

    def _mask_list(self, items: List[Any]) -> List[Any]:
        result = []
        for item in items:
            if isinstance(item, dict):
                result.append(self.mask(item))
            elif isinstance(item, list):
                result.append(self._mask_list(item))
            else:
                result.append(item)
        return result

    def is_sensitive_key(self, key: str) -> bool:
        """Vérification case-insensitive par inclusion."""
        if not key or not isinstance(key, str):
            return False

        key_lower = key.lower()
        return any(pattern in key_lower for pattern in self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """
        Raises:
            ValueError: Si pattern vide
        """
        if not pattern or not pattern.strip():
            raise ValueError("Pattern cannot be empty")

        pattern_lower = pattern.lower().strip()
        if pattern_lower not in self._patterns:
            self._patterns.append(pattern_lower)

    def remove_pattern(self, pattern: str) -> bool:
        """
        Retire un pattern.

        Returns:
            True si pattern retiré, False si non trouvé
        """
        pattern_lower = pattern.lower().strip()
        if pattern_lower in self._patterns:
            self._patterns.remove(pattern_lower)
            return True
        return False
