"""
Allergen Matcher - Which of a profile's allergies does this product hit?

Three independent signals per known allergy label, checked in order and
short-circuiting on the first hit:
1. Product allergen tags ('en:peanuts' -> 'peanuts') equal or contain an entry tag
2. Structured ingredient ids equal or contain an entry id
3. Entry keywords appear in the raw ingredients text (whole word for
   keywords of 3 chars or fewer, substring otherwise)

Labels without a rule entry fall back to a whole-word match of the label's
first word against tags, text and ids.

Note: the "contains" checks in 1 and 2 are plain substring tests and can
over-match (a short tag inside an unrelated longer one). This is kept as is;
tightening it changes which allergens get reported.
"""

import re
from typing import Iterable, List

from biteinsight.engine.models import AllergyEntry
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.tags import ProfileTag
from biteinsight.utils.ingredient_text import normalize_allergen_tag

SHORT_KEYWORD_LENGTH = 3


def _word_pattern(word: str) -> 're.Pattern':
    return re.compile(r'\b' + re.escape(word) + r'\b', re.IGNORECASE)


def _tags_match(entry: AllergyEntry, product_tags: List[str]) -> bool:
    return any(al == t or t in al for t in entry.tags for al in product_tags)


def _ids_match(entry: AllergyEntry, ingredient_ids: List[str]) -> bool:
    return any(sid == i or i in sid for i in entry.ingredient_ids for sid in ingredient_ids)


def _keywords_match(entry: AllergyEntry, text: str) -> bool:
    lowered = text.lower()
    for keyword in entry.keywords:
        if len(keyword) <= SHORT_KEYWORD_LENGTH:
            if _word_pattern(keyword).search(text):
                return True
        elif keyword in lowered:
            return True
    return False


def _fallback_match(label: str, product_tags: List[str], text: str, ingredient_ids: List[str]) -> bool:
    words = label.split()
    if not words:
        return False
    pattern = _word_pattern(words[0].lower())
    return (
        any(pattern.search(tag) for tag in product_tags)
        or bool(pattern.search(text))
        or any(pattern.search(sid) for sid in ingredient_ids)
    )


def match_allergens(
    allergies: Iterable[str],
    allergen_tags: Iterable[str],
    ingredients_text: str,
    ingredient_ids: Iterable[str],
) -> List[str]:
    """
    Return the profile allergy labels matched by this product, in profile order.

    Args:
        allergies: Profile allergy labels, e.g. ["Peanut Allergy"]
        allergen_tags: Product allergen tags, e.g. ["en:peanuts"]
        ingredients_text: Raw ingredients text
        ingredient_ids: Structured ingredient ids (any case)
    """
    product_tags = [normalize_allergen_tag(t) for t in allergen_tags if t and t.strip()]
    ids = [str(i).lower() for i in ingredient_ids if i]
    text = ingredients_text or ''

    matched = []
    for label in allergies:
        entry = rule_tables.allergy_entry(ProfileTag.parse(label))
        if entry is None:
            hit = _fallback_match(label, product_tags, text, ids)
        else:
            hit = (
                _tags_match(entry, product_tags)
                or _ids_match(entry, ids)
                or _keywords_match(entry, text)
            )
        if hit:
            matched.append(label)
    return matched
