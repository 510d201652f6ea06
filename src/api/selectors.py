"""
API - Label Selectors

Évaluation des sélecteurs de labels et représentation texte
(recopiée dans status.selector de la policy).
"""

from typing import Dict, List

from .types import LabelSelector, LabelSelectorRequirement, SelectorOperator


def is_empty(selector: LabelSelector) -> bool:
    """Un sélecteur sans matchLabels ni matchExpressions."""
    return not selector.match_labels and not selector.match_expressions


def _requirement_matches(requirement: LabelSelectorRequirement, labels: Dict[str, str]) -> bool:
    present = requirement.key in labels

    if requirement.operator == SelectorOperator.IN:
        return present and labels[requirement.key] in requirement.values
    if requirement.operator == SelectorOperator.NOT_IN:
        return not present or labels[requirement.key] not in requirement.values
    if requirement.operator == SelectorOperator.EXISTS:
        return present
    if requirement.operator == SelectorOperator.DOES_NOT_EXIST:
        return not present

    raise ValueError(f"Unknown selector operator: {requirement.operator}")


def matches(selector: LabelSelector, labels: Dict[str, str]) -> bool:
    """
    Vérifie si des labels satisfont le sélecteur.

    Un sélecteur vide ne sélectionne rien: une policy mal écrite ne doit
    jamais couvrir toute la flotte.

    Args:
        selector: Sélecteur de la policy
        labels: Labels de l'objet

    Returns:
        True si toutes les exigences sont satisfaites
    """
    if is_empty(selector):
        return False

    for key, value in selector.match_labels.items():
        if labels.get(key) != value:
            return False

    return all(_requirement_matches(r, labels) for r in selector.match_expressions)


def to_string(selector: LabelSelector) -> str:
    """
    Représentation texte stable, triée par clé.

    Exemple: "env in (prod,staging),nodepool=workers,!spot"
    """
    parts: List[tuple] = []

    for key, value in selector.match_labels.items():
        parts.append((key, f"{key}={value}"))

    for requirement in selector.match_expressions:
        key = requirement.key
        values = ",".join(sorted(requirement.values))
        if requirement.operator == SelectorOperator.IN:
            parts.append((key, f"{key} in ({values})"))
        elif requirement.operator == SelectorOperator.NOT_IN:
            parts.append((key, f"{key} notin ({values})"))
        elif requirement.operator == SelectorOperator.EXISTS:
            parts.append((key, key))
        else:
            parts.append((key, f"!{key}"))

    return ",".join(text for _, text in sorted(parts))
