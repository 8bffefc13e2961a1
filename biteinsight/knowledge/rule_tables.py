"""
Rule Tables - Loaders for the packaged reference data

Loads default nutrient thresholds, condition overrides, allergy keyword
entries, insight relevance weights, substitute tables and ingredient / insight
display texts from reference_data/*.json. Each file is read once per
directory and cached.

Every table key that names a profile tag is validated against ProfileTag at
load time, so a typo in a JSON file fails loudly instead of silently never
matching.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from biteinsight.core.settings import reference_data_dir
from biteinsight.engine.models import (
    INSIGHT_KEYS,
    NUTRIENT_KEYS,
    AllergyEntry,
    FlagReason,
    Threshold,
    ThresholdOverride,
)
from biteinsight.knowledge.tags import ProfileTag

THRESHOLDS_FILE = 'default_thresholds.json'
OVERRIDES_FILE = 'condition_overrides.json'
ALLERGIES_FILE = 'allergy_keywords.json'
WEIGHTS_FILE = 'insight_weights.json'
SUBSTITUTES_FILE = 'substitutes.json'
DESCRIPTIONS_FILE = 'ingredient_descriptions.json'

_OVERRIDE_FIELDS = {'low', 'moderate', 'inverted', 'labels'}
_DIETARY_REASONS = {FlagReason.VEGAN.value, FlagReason.VEGETARIAN.value}

# Parsed tables, keyed by (directory, filename)
_CACHE: Dict[Tuple[str, str], Any] = {}


def clear_cache():
    """Drop all cached tables (next access re-reads the files)"""
    _CACHE.clear()


def _load_json(filename: str) -> Dict[str, Any]:
    path = Path(reference_data_dir()) / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Reference data file not found: {path}"
        )
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def _cached(filename: str, parser):
    cache_key = (str(reference_data_dir()), filename)
    if cache_key not in _CACHE:
        _CACHE[cache_key] = parser(_load_json(filename))
    return _CACHE[cache_key]


def _parse_tag(label: str, source: str) -> ProfileTag:
    tag = ProfileTag.parse(label)
    if tag is ProfileTag.OTHER:
        raise ValueError(f"Unknown profile tag '{label}' in {source}")
    return tag


def _check_nutrient(key: str, source: str):
    if key not in NUTRIENT_KEYS:
        raise ValueError(f"Unknown nutrient key '{key}' in {source}")


def _parse_labels(labels: Any, source: str) -> Optional[Tuple[str, str, str]]:
    if labels is None:
        return None
    if not isinstance(labels, list) or len(labels) != 3:
        raise ValueError(f"Rating labels must be a list of 3 strings in {source}")
    return tuple(str(label) for label in labels)


# ============================================================================
# PARSERS
# ============================================================================

def _parse_thresholds(data: Dict[str, Any]) -> Dict[str, Any]:
    nutrients = {}
    for key, raw in data['nutrients'].items():
        _check_nutrient(key, THRESHOLDS_FILE)
        nutrients[key] = Threshold(
            low=float(raw['low']),
            moderate=float(raw['moderate']),
            inverted=bool(raw.get('inverted', False)),
            labels=_parse_labels(raw.get('labels'), THRESHOLDS_FILE),
        )
    missing = [k for k in NUTRIENT_KEYS if k not in nutrients]
    if missing:
        raise ValueError(f"Missing default thresholds for: {missing}")

    return {
        'nutrients': nutrients,
        'labels': dict(data.get('labels', {})),
        'units': dict(data.get('units', {})),
        'dri': {k: float(v) for k, v in data.get('daily_reference_intake', {}).items()},
    }


def _parse_overrides(data: Dict[str, Any]) -> Dict[ProfileTag, Dict[str, ThresholdOverride]]:
    overrides = {}
    for label, nutrients in data['overrides'].items():
        tag = _parse_tag(label, OVERRIDES_FILE)
        parsed = {}
        for key, patch in nutrients.items():
            _check_nutrient(key, OVERRIDES_FILE)
            unknown = set(patch) - _OVERRIDE_FIELDS
            if unknown:
                raise ValueError(
                    f"Unknown override fields {sorted(unknown)} for '{label}'.{key} in {OVERRIDES_FILE}"
                )
            parsed[key] = ThresholdOverride(
                low=float(patch['low']) if 'low' in patch else None,
                moderate=float(patch['moderate']) if 'moderate' in patch else None,
                inverted=bool(patch['inverted']) if 'inverted' in patch else None,
                labels=_parse_labels(patch.get('labels'), OVERRIDES_FILE),
            )
        overrides[tag] = parsed
    return overrides


def _parse_allergies(data: Dict[str, Any]) -> Dict[ProfileTag, AllergyEntry]:
    entries = {}
    for label, raw in data['allergies'].items():
        tag = _parse_tag(label, ALLERGIES_FILE)
        entries[tag] = AllergyEntry(
            tags=[t.lower() for t in raw.get('tags', [])],
            keywords=[k.lower() for k in raw.get('keywords', [])],
            ingredient_ids=[i.lower() for i in raw.get('ingredient_ids', [])],
        )
    return entries


def _parse_weights(data: Dict[str, Any]) -> Dict[str, Any]:
    weights = {}
    for label, per_insight in data['weights'].items():
        tag = _parse_tag(label, WEIGHTS_FILE)
        for key in per_insight:
            if key not in INSIGHT_KEYS:
                raise ValueError(f"Unknown insight key '{key}' for '{label}' in {WEIGHTS_FILE}")
        weights[tag] = {k: int(w) for k, w in per_insight.items()}
    return {'default': int(data.get('default_weight', 1)), 'weights': weights}


def _parse_substitutes(data: Dict[str, Any]) -> Dict[str, Any]:
    dietary = {}
    for reason, table in data.get('dietary', {}).items():
        if reason not in _DIETARY_REASONS:
            raise ValueError(f"Unknown dietary reason '{reason}' in {SUBSTITUTES_FILE}")
        dietary[reason] = {kw.lower(): list(subs) for kw, subs in table.items()}

    def by_tag(section: str) -> Dict[ProfileTag, Dict[str, List[str]]]:
        return {
            _parse_tag(label, SUBSTITUTES_FILE): {kw.lower(): list(subs) for kw, subs in table.items()}
            for label, table in data.get(section, {}).items()
        }

    return {
        'dietary': dietary,
        'allergens': by_tag('allergens'),
        'conditions': by_tag('conditions'),
    }


def _parse_descriptions(data: Dict[str, Any]) -> Dict[str, Any]:
    ingredients = {}
    for key, text in data.get('ingredients', {}).items():
        if not isinstance(text, dict) or not text.get('what') or not text.get('why'):
            raise ValueError(f"Description for '{key}' needs 'what' and 'why' in {DESCRIPTIONS_FILE}")
        ingredients[key.strip().lower()] = {'what': str(text['what']), 'why': str(text['why'])}

    insights = {}
    for key, text in data.get('insights', {}).items():
        if key not in INSIGHT_KEYS:
            raise ValueError(f"Unknown insight key '{key}' in {DESCRIPTIONS_FILE}")
        insights[key] = str(text)

    return {'ingredients': ingredients, 'insights': insights}


# ============================================================================
# LOOKUPS
# ============================================================================

def default_thresholds() -> Dict[str, Threshold]:
    """Fresh copy of the default threshold table (safe to mutate)"""
    table = _cached(THRESHOLDS_FILE, _parse_thresholds)['nutrients']
    return {
        key: Threshold(t.low, t.moderate, t.inverted, t.labels)
        for key, t in table.items()
    }


def nutrient_labels() -> Dict[str, str]:
    return dict(_cached(THRESHOLDS_FILE, _parse_thresholds)['labels'])


def nutrient_units() -> Dict[str, str]:
    return dict(_cached(THRESHOLDS_FILE, _parse_thresholds)['units'])


def daily_reference_intake() -> Dict[str, float]:
    return dict(_cached(THRESHOLDS_FILE, _parse_thresholds)['dri'])


def threshold_overrides(tag: ProfileTag) -> Dict[str, ThresholdOverride]:
    """Partial thresholds registered for a tag; empty when none"""
    return dict(_cached(OVERRIDES_FILE, _parse_overrides).get(tag, {}))


def allergy_entry(tag: ProfileTag) -> Optional[AllergyEntry]:
    return _cached(ALLERGIES_FILE, _parse_allergies).get(tag)


def insight_weight(tag: ProfileTag, insight_key: str) -> Optional[int]:
    """Registered weight for (tag, insight), or None when the pair is unregistered"""
    weights = _cached(WEIGHTS_FILE, _parse_weights)['weights']
    return weights.get(tag, {}).get(insight_key)


def default_insight_weight() -> int:
    return _cached(WEIGHTS_FILE, _parse_weights)['default']


def dietary_substitutes(reason: FlagReason) -> Dict[str, List[str]]:
    return dict(_cached(SUBSTITUTES_FILE, _parse_substitutes)['dietary'].get(reason.value, {}))


def allergen_substitutes(tag: ProfileTag) -> Dict[str, List[str]]:
    return dict(_cached(SUBSTITUTES_FILE, _parse_substitutes)['allergens'].get(tag, {}))


def condition_substitutes(tag: ProfileTag) -> Dict[str, List[str]]:
    return dict(_cached(SUBSTITUTES_FILE, _parse_substitutes)['conditions'].get(tag, {}))


def ingredient_description(key: str) -> Optional[Dict[str, str]]:
    """what/why text for a lower-cased ingredient id or name"""
    text = _cached(DESCRIPTIONS_FILE, _parse_descriptions)['ingredients'].get(key)
    return dict(text) if text else None


def insight_explanation(insight_key: str) -> str:
    return _cached(DESCRIPTIONS_FILE, _parse_descriptions)['insights'].get(insight_key, '')


def load_all():
    """Read and validate every table (used at pipeline start-up)"""
    _cached(THRESHOLDS_FILE, _parse_thresholds)
    _cached(OVERRIDES_FILE, _parse_overrides)
    _cached(ALLERGIES_FILE, _parse_allergies)
    _cached(WEIGHTS_FILE, _parse_weights)
    _cached(SUBSTITUTES_FILE, _parse_substitutes)
    _cached(DESCRIPTIONS_FILE, _parse_descriptions)
