"""
Hybrid Ingredient Matcher

Combines clean display names (parsed from the ingredients text) with the
metadata of structured ingredient records (id, vegan/vegetarian flags).

Matching runs per clean name, in order, against the structured records not
yet claimed:
1. Exact: normalised name equals the record text or its id-derived name
2. Containment: either string contains the other
3. Word overlap: shared words (longer than 2 chars) / max word count >= 0.5,
   best score wins

A record is claimed by at most one name.
"""

import re
from dataclasses import replace
from typing import List, Optional, Set

from biteinsight.engine.models import Ingredient

MIN_OVERLAP_RATIO = 0.5

_WHITESPACE = re.compile(r'\s+')


def _norm(text: str) -> str:
    return _WHITESPACE.sub(' ', (text or '').lower()).strip()


def _id_name(ingredient_id: Optional[str]) -> str:
    """'en:skimmed-milk-powder' -> 'skimmed milk powder'"""
    if not ingredient_id:
        return ''
    return _norm(re.sub(r'^en:', '', ingredient_id).replace('-', ' '))


def _words(text: str) -> Set[str]:
    return {w for w in text.split(' ') if len(w) > 2}


class _Pool:
    """Structured records addressed by index, with a parallel claimed flag per record."""

    def __init__(self, records: List[Ingredient]):
        self.records = records
        self.texts = [_norm(r.text) for r in records]
        self.id_names = [_id_name(r.id) for r in records]
        self.claimed = [False] * len(records)

    def open_indices(self):
        return (i for i in range(len(self.records)) if not self.claimed[i])

    def find(self, name: str) -> int:
        n = _norm(name)
        if not n:
            return -1

        for i in self.open_indices():
            if self.texts[i] == n or self.id_names[i] == n:
                return i

        for i in self.open_indices():
            t = self.texts[i]
            if t and (n in t or t in n):
                return i
            id_name = self.id_names[i]
            if id_name and (n in id_name or id_name in n):
                return i

        name_words = _words(n)
        best_index = -1
        best_score = 0.0
        for i in self.open_indices():
            record_words = _words(self.texts[i])
            if not record_words or not name_words:
                continue
            overlap = len(name_words & record_words)
            score = overlap / max(len(name_words), len(record_words))
            if score >= MIN_OVERLAP_RATIO and score > best_score:
                best_score = score
                best_index = i
        return best_index


def build_hybrid_ingredients(clean_names: List[str], structured: List[Ingredient]) -> List[Ingredient]:
    """
    Reconcile clean names with structured records.

    Args:
        clean_names: Display names from parse_ingredients_text, in order
        structured: Cleaned structured records

    Returns:
        One Ingredient per clean name (same order), carrying the matched
        record's metadata; unmatched names get unknown vegan/vegetarian status.
        When there are no clean names the structured list is returned as is.
    """
    if not clean_names:
        return list(structured)

    pool = _Pool(structured)
    result = []
    for name in clean_names:
        index = pool.find(name)
        if index >= 0:
            pool.claimed[index] = True
            result.append(replace(pool.records[index], text=name))
        else:
            result.append(Ingredient(text=name))
    return result
