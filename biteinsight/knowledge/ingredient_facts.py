"""
Ingredient Fact Lookup - BM25 + Fuzzy Matching

Searches reference_data/ingredient_facts.csv for a short nutritional fact and
the dietary tags of an ingredient display name, using a 3-tier approach:
1. Exact match on ingredient or keyword
2. Fuzzy matching (typos, spacing, punctuation)
3. BM25 (multi-word, word order independent)

Used to annotate scan results; classification never depends on it.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
from rapidfuzz import fuzz, process
from rank_bm25 import BM25Okapi

from biteinsight.core.settings import reference_data_dir

FACTS_FILE = 'ingredient_facts.csv'

FUZZY_HIGH = 90
FUZZY_MEDIUM = 80
BM25_HIGH = 8.0
BM25_MEDIUM = 5.0


class IngredientFactLookup:
    """
    Ingredient fact lookup using exact, fuzzy and BM25 matching.

    Every searchable string (ingredient name, plus its keyword when different)
    maps back to its CSV row through index_map.
    """

    def __init__(self, csv_path: Optional[str] = None):
        if csv_path is None:
            csv_path = Path(reference_data_dir()) / FACTS_FILE
        if not Path(csv_path).exists():
            raise FileNotFoundError(f"Ingredient facts file not found: {csv_path}")

        self.df = pd.read_csv(csv_path, dtype=str).fillna('')

        self.all_searchable: List[str] = []
        self.index_map: List[int] = []

        for idx, row in self.df.iterrows():
            ingredient = self._normalize(row['ingredient'])
            keyword = self._normalize(row['keyword'])

            if not ingredient:
                continue

            self.all_searchable.append(ingredient)
            self.index_map.append(idx)

            if keyword and keyword != ingredient:
                self.all_searchable.append(keyword)
                self.index_map.append(idx)

        tokenized_corpus = [self._tokenize(text) for text in self.all_searchable]
        self.bm25 = BM25Okapi(tokenized_corpus)

    def _normalize(self, text: str) -> str:
        if not text:
            return ""
        text = text.lower().strip()
        text = re.sub(r'\s+', ' ', text)
        # Keep word characters, spaces and hyphens
        return re.sub(r'[^\w\s\-]', '', text)

    def _tokenize(self, text: str) -> List[str]:
        tokens = re.split(r'[\s\-]+', self._normalize(text))
        return [t for t in tokens if t]

    def _exact_match(self, query: str) -> Optional[int]:
        normalized = self._normalize(query)
        if normalized in self.all_searchable:
            return self.index_map[self.all_searchable.index(normalized)]
        return None

    def _fuzzy_match(self, query: str, threshold: int = FUZZY_MEDIUM) -> Tuple[Optional[int], float, str]:
        """
        Fuzzy matching for typos, spacing, punctuation.

        Returns: (df_index, score, matched searchable string)
        """
        result = process.extractOne(
            self._normalize(query),
            self.all_searchable,
            scorer=fuzz.ratio,
            score_cutoff=threshold
        )
        if result:
            match, score, idx = result
            return self.index_map[idx], score, match
        return None, 0, ""

    def _bm25_match(self, query: str, threshold: float = BM25_MEDIUM) -> Tuple[Optional[int], float]:
        """
        BM25 matching for multi-word queries (word order independent).

        Returns: (df_index, score)
        """
        tokenized_query = self._tokenize(query)
        if not tokenized_query:
            return None, 0.0

        scores = self.bm25.get_scores(tokenized_query)
        if len(scores) == 0:
            return None, 0.0

        best_idx = scores.argmax()
        best_score = float(scores[best_idx])
        if best_score >= threshold:
            return self.index_map[best_idx], best_score
        return None, 0.0

    def _is_number_variant_mismatch(self, query: str, matched: str) -> bool:
        """
        True when query and match share a base name but differ in trailing
        numbers, e.g. "vitamin b" vs "vitamin b12", "omega 3" vs "omega 6".
        """
        query_norm = query.lower().strip()
        match_norm = matched.lower().strip()

        query_base = re.sub(r'[\d\s\-]+$', '', query_norm).strip()
        match_base = re.sub(r'[\d\s\-]+$', '', match_norm).strip()

        if query_base == match_base and query_base:
            return re.findall(r'\d+', query_norm) != re.findall(r'\d+', match_norm)
        return False

    def _row_result(self, df_idx: int, match_type: str, confidence: str, score) -> Dict:
        row = self.df.iloc[df_idx]
        return {
            "found": True,
            "ingredient": row['ingredient'],
            "category": row['category'],
            "fact": row['fact'],
            "dietary_tags": [t.strip() for t in row['dietary_tags'].split(';') if t.strip()],
            "match_type": match_type,
            "confidence": confidence,
            "score": score,
        }

    def _candidates(self, query: str, top_n: int = 3) -> List[str]:
        """Closest ingredient names by fuzzy score, for display when nothing matched"""
        names = []
        results = process.extract(
            self._normalize(query),
            self.all_searchable,
            scorer=fuzz.ratio,
            limit=top_n * 2
        )
        for _, _, idx in results:
            name = self.df.iloc[self.index_map[idx]]['ingredient']
            if name not in names:
                names.append(name)
        return names[:top_n]

    def lookup(self, ingredient_name: str) -> Dict:
        """
        Look up an ingredient display name.

        Order:
        1. Exact match -> confidence "exact"
        2. Fuzzy >= 90 or BM25 >= 8.0 -> "high"
        3. Fuzzy >= 80 or BM25 >= 5.0 -> "medium"
        4. Otherwise not found, with the closest candidate names
        """
        if not ingredient_name or not ingredient_name.strip():
            return {
                "found": False,
                "ingredient": "UNKNOWN",
                "reason": "Empty ingredient name",
                "confidence": "none"
            }

        exact_idx = self._exact_match(ingredient_name)
        if exact_idx is not None:
            return self._row_result(exact_idx, "exact", "exact", 100)

        fuzzy_idx, fuzzy_score, fuzzy_text = self._fuzzy_match(ingredient_name)
        if fuzzy_idx is not None and self._is_number_variant_mismatch(ingredient_name, fuzzy_text):
            fuzzy_idx, fuzzy_score = None, 0
        bm25_idx, bm25_score = self._bm25_match(ingredient_name)

        if fuzzy_score >= FUZZY_HIGH:
            return self._row_result(fuzzy_idx, "fuzzy", "high", int(fuzzy_score))

        if bm25_score >= BM25_HIGH:
            return self._row_result(bm25_idx, "bm25", "high", bm25_score)

        if fuzzy_idx is not None and fuzzy_score >= bm25_score:
            return self._row_result(fuzzy_idx, "fuzzy", "medium", int(fuzzy_score))

        if bm25_idx is not None:
            return self._row_result(bm25_idx, "bm25", "medium", bm25_score)

        return {
            "found": False,
            "ingredient": "UNKNOWN",
            "candidates": self._candidates(ingredient_name),
            "confidence": "none",
            "reason": "No match found in ingredient facts"
        }


# Global instance (lazy loaded)
_lookup_instance = None


def lookup_ingredient_fact(ingredient_name: str) -> Dict:
    """Look up an ingredient with the shared, lazily built index"""
    global _lookup_instance

    if _lookup_instance is None:
        _lookup_instance = IngredientFactLookup()

    return _lookup_instance.lookup(ingredient_name)


def reset_lookup():
    """Drop the shared index (next lookup rebuilds it from the current reference dir)"""
    global _lookup_instance
    _lookup_instance = None
