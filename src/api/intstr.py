"""
API - Int or Percent

Résolution des valeurs "entier absolu ou pourcentage" (maxUnhealthy).

Règle d'arrondi: partie entière inférieure (floor). "50%" de 3 donne 1.
"""

import re

from .types import IntOrPercent


_PERCENT_PATTERN = re.compile(r"^(\d+)%$")


class InvalidIntOrPercentError(ValueError):
    """Valeur ni entier positif, ni pourcentage valide."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"invalid int or percent value: {value!r}")


def resolve_int_or_percent(value: IntOrPercent, total: int) -> int:
    """
    Résout une valeur absolue ou un pourcentage de `total`.

    Args:
        value: Entier >= 0 ou chaîne "<entier>%"
        total: Base du pourcentage

    Returns:
        Valeur absolue

    Raises:
        InvalidIntOrPercentError: Valeur non résoluble
    """
    # bool est un int en Python, mais n'a aucun sens ici
    if isinstance(value, bool):
        raise InvalidIntOrPercentError(value)

    if isinstance(value, int):
        if value < 0:
            raise InvalidIntOrPercentError(value)
        return value

    if isinstance(value, str):
        match = _PERCENT_PATTERN.match(value.strip())
        if not match:
            raise InvalidIntOrPercentError(value)
        percent = int(match.group(1))
        return total * percent // 100

    raise InvalidIntOrPercentError(value)
