"""
Substitute Finder - Alternatives for a harmful ingredient

Lookup stages, first hit wins:
1. Dietary table for the flag reason (vegan / vegetarian only)
2. Allergen tables, one per profile allergy, in profile order
3. Condition tables, one per profile condition, in profile order

Within a table the first keyword (declaration order) contained in the
lower-cased ingredient text wins. No hit anywhere gives an empty list.
"""

from typing import Dict, Iterable, List, Optional

from biteinsight.engine.models import FlagReason
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.tags import ProfileTag


def _first_keyword_hit(text: str, table: Dict[str, List[str]]) -> Optional[List[str]]:
    for keyword, substitutes in table.items():
        if keyword in text and substitutes:
            return list(substitutes)
    return None


def _dietary_stage(text: str, reason: FlagReason) -> Optional[List[str]]:
    if reason not in (FlagReason.VEGAN, FlagReason.VEGETARIAN):
        return None
    return _first_keyword_hit(text, rule_tables.dietary_substitutes(reason))


def _allergen_stage(text: str, allergies: Iterable[str]) -> Optional[List[str]]:
    for label in allergies:
        hit = _first_keyword_hit(text, rule_tables.allergen_substitutes(ProfileTag.parse(label)))
        if hit:
            return hit
    return None


def _condition_stage(text: str, conditions: Iterable[str]) -> Optional[List[str]]:
    for label in conditions:
        hit = _first_keyword_hit(text, rule_tables.condition_substitutes(ProfileTag.parse(label)))
        if hit:
            return hit
    return None


def get_substitutes(
    ingredient_text: str,
    reason: FlagReason,
    conditions: Iterable[str] = (),
    allergies: Iterable[str] = (),
) -> List[str]:
    """
    Suggest alternatives for a flagged ingredient.

    Args:
        ingredient_text: Display text of the ingredient
        reason: Why it was flagged
        conditions: Profile condition labels (order matters)
        allergies: Profile allergy labels (order matters)

    Returns:
        Substitute names; empty when nothing matches
    """
    text = (ingredient_text or '').lower()
    if not text:
        return []

    stages = (
        lambda: _dietary_stage(text, reason),
        lambda: _allergen_stage(text, allergies),
        lambda: _condition_stage(text, conditions),
    )
    for stage in stages:
        hit = stage()
        if hit:
            return hit
    return []
