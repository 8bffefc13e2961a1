"""
Ingredient text utilities

Open Food Facts structured ingredient records are often noisy (merged
entries, OCR artifacts, fragments). These helpers turn the plain-text
ingredient list into clean display names and tidy up the structured records
so the hybrid matcher can attach their vegan/vegetarian metadata.
"""

import json
import re
from typing import Any, Dict, List, Union

_PARENTHETICAL = re.compile(r'\([^)]*\)')
_PERCENTAGE = re.compile(r'\d+([.,]\d+)?\s*%')
_STANDALONE_NUMBER = re.compile(r'\b\d+([.,]\d+)?\b')
_WHITESPACE = re.compile(r'\s+')
_SEPARATORS = re.compile(r'[,;]')
_DIGITS_ONLY = re.compile(r'^\d+$')


def clean_token(raw: str) -> str:
    """
    Clean one comma-separated token of an ingredient list.

    "Sugar (cane) 33.4 %" -> "Sugar"
    """
    text = _PARENTHETICAL.sub('', raw)
    text = _PERCENTAGE.sub('', text)
    text = text.replace('*', '')
    text = _STANDALONE_NUMBER.sub('', text)
    return _WHITESPACE.sub(' ', text).strip()


def clean_ingredient_name(text: str) -> str:
    """Clean a structured record's text; also drops '_' allergen emphasis markers"""
    if not text:
        return ''
    return clean_token(str(text).replace('_', ''))


def sentence_case(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def parse_ingredients_text(text: str) -> List[str]:
    """
    Parse raw (English) ingredients text into clean, de-duplicated,
    sentence-cased ingredient names in their original order.

    Args:
        text: Raw ingredients text, e.g. "Sugar, cocoa butter (23%), milk*"

    Returns:
        e.g. ["Sugar", "Cocoa butter", "Milk"]
    """
    if not text:
        return []

    names: List[str] = []
    seen = set()
    for token in _SEPARATORS.split(text):
        cleaned = clean_token(token)
        if len(cleaned) <= 1 or _DIGITS_ONLY.match(cleaned):
            continue
        lowered = cleaned.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        names.append(lowered)

    return [sentence_case(name) for name in names]


def decode_structured_ingredients(raw: Union[str, List[Any], None]) -> List[Dict[str, Any]]:
    """
    Decode structured ingredient records (JSON text or an already-decoded list).

    Anything malformed yields an empty list: callers fall back to text-only
    classification.
    """
    if raw is None or raw == '':
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []

    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def prepare_structured_ingredients(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Clean record texts, drop near-empty entries and de-duplicate by id
    (or by text when there is no id), case-insensitively.
    """
    prepared = []
    seen = set()
    for record in records:
        text = clean_ingredient_name(str(record.get('text') or ''))
        if len(text) <= 1:
            continue
        key = str(record.get('id') or text).lower()
        if key in seen:
            continue
        seen.add(key)
        prepared.append({**record, 'text': text})
    return prepared


def collect_ingredient_ids(items: List[Dict[str, Any]]) -> List[str]:
    """Lower-cased ids of all records, including nested sub-ingredients"""
    ids: List[str] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if item.get('id'):
            ids.append(str(item['id']).lower())
        nested = item.get('ingredients')
        if isinstance(nested, list):
            ids.extend(collect_ingredient_ids(nested))
    return ids


def normalize_allergen_tag(tag: str) -> str:
    """'en:tree-nuts' -> 'tree nuts'"""
    return re.sub(r'^en:', '', tag.strip()).replace('-', ' ').lower()


def allergen_display_names(tags: List[str]) -> List[str]:
    """'en:tree-nuts' -> 'Tree nuts'"""
    names = []
    for tag in tags:
        if not tag or not tag.strip():
            continue
        names.append(sentence_case(normalize_allergen_tag(tag)))
    return names
