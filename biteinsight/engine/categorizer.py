"""
Ingredient Categorizer - harmful / ok / safe

Per ingredient, in order:
1. id is one of the product allergen tags -> safe (allergens are reported by
   the allergen matcher, never duplicated here)
2. vegan conflict, vegetarian conflict, or personally flagged -> harmful
3. E-number additive id (en:e<digits>) -> ok
4. everything else -> safe

Ok and safe ingredients can be explained with describe_ingredient().
"""

import re
from typing import Dict, Iterable, List, Optional

from biteinsight.engine.models import (
    CategorizedIngredients,
    FlaggedIngredient,
    FlagReason,
    Ingredient,
    TriState,
)
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.tags import DietaryTag, preference_codes

E_NUMBER_ID = re.compile(r'^en:e\d+', re.IGNORECASE)
E_NUMBER_PREFIX = re.compile(r'^(en:e\d+)')

FLAG_REASON_TEXT: Dict[FlagReason, Dict[str, str]] = {
    FlagReason.VEGAN: {
        'title': 'Not vegan',
        'body': 'This ingredient is not vegan, which conflicts with your dietary preferences.',
    },
    FlagReason.VEGETARIAN: {
        'title': 'Not vegetarian',
        'body': 'This ingredient is not vegetarian, which conflicts with your dietary preferences.',
    },
    FlagReason.USER_FLAGGED: {
        'title': 'Personally flagged',
        'body': "You've flagged this ingredient. It will be highlighted whenever it appears in products you scan.",
    },
}


def is_additive(ingredient: Ingredient) -> bool:
    return bool(ingredient.id) and bool(E_NUMBER_ID.match(ingredient.id))


def count_additives(ingredients: Iterable[Ingredient]) -> int:
    """Number of E-number additives in a unified ingredient list"""
    return sum(1 for ingredient in ingredients if is_additive(ingredient))


def describe_ingredient(ingredient: Ingredient) -> Optional[Dict[str, str]]:
    """
    Plain-English what/why text for an ok or safe ingredient.

    Tries the Open Food Facts id, then the lower-cased name, then the bare
    E-number of variant ids ('en:e476i' -> 'en:e476').

    Returns:
        {'what': ..., 'why': ...} or None when nothing is registered
    """
    ingredient_id = (ingredient.id or '').lower()
    if ingredient_id:
        description = rule_tables.ingredient_description(ingredient_id)
        if description:
            return description

    name = ingredient.text.strip().lower()
    if name:
        description = rule_tables.ingredient_description(name)
        if description:
            return description

    match = E_NUMBER_PREFIX.match(ingredient_id)
    if match:
        return rule_tables.ingredient_description(match.group(1))
    return None


def _flagged_patterns(flagged_names: Iterable[str]) -> List[tuple]:
    patterns = []
    seen = set()
    for name in flagged_names:
        lowered = (name or '').strip().lower()
        if not lowered or lowered in seen:
            continue
        seen.add(lowered)
        patterns.append((lowered, re.compile(r'\b' + re.escape(lowered) + r'\b')))
    return patterns


def _flag_reason(
    ingredient: Ingredient,
    vegan: bool,
    vegetarian: bool,
    flagged: List[tuple],
) -> Optional[FlagReason]:
    if vegan and ingredient.vegan is TriState.NO:
        return FlagReason.VEGAN
    if vegetarian and ingredient.vegetarian is TriState.NO:
        return FlagReason.VEGETARIAN

    text = ingredient.text.lower()
    for name, pattern in flagged:
        if text == name or pattern.search(text):
            return FlagReason.USER_FLAGGED
    return None


def categorize_ingredients(
    ingredients: List[Ingredient],
    allergen_tags: Iterable[str],
    preferences: Iterable[str],
    flagged_names: Iterable[str],
) -> CategorizedIngredients:
    """
    Partition ingredients into harmful / ok / safe.

    Args:
        ingredients: Unified ingredient list (hybrid matcher output)
        allergen_tags: Product allergen tags, e.g. ["en:milk"]
        preferences: Dietary preference codes or labels ('vegan' / 'Vegan')
        flagged_names: User's personally flagged ingredient names

    Returns:
        CategorizedIngredients; every input ingredient lands in exactly one bucket
    """
    allergen_set = {t.lower() for t in allergen_tags if t}
    codes = set(preference_codes(preferences))
    vegan = DietaryTag.VEGAN.value in codes
    vegetarian = DietaryTag.VEGETARIAN.value in codes
    flagged = _flagged_patterns(flagged_names)

    result = CategorizedIngredients()
    for ingredient in ingredients:
        ingredient_id = (ingredient.id or '').lower()

        if ingredient_id and ingredient_id in allergen_set:
            result.safe.append(ingredient)
            continue

        reason = _flag_reason(ingredient, vegan, vegetarian, flagged)
        if reason is not None:
            result.harmful.append(FlaggedIngredient(ingredient=ingredient, reason=reason))
        elif is_additive(ingredient):
            result.ok.append(ingredient)
        else:
            result.safe.append(ingredient)

    return result
