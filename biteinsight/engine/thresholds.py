"""
Threshold Builder - Profile-adjusted nutrient rating thresholds

Starts from the default per-100g table and applies the condition overrides of
every active profile tag. For low/moderate the strictest (numerically lowest)
value wins. inverted/labels are taken from the override when it sets them.

Tags are de-duplicated and applied in sorted order, so any permutation of the
same tag set gives an identical table.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from biteinsight.engine.models import (
    DEFAULT_RATING_LABELS,
    NEGATIVE_RED,
    OK_YELLOW,
    POOR_ORANGE,
    POSITIVE_GREEN,
    NutrientData,
    NutrientRating,
    Threshold,
)
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.tags import ProfileTag, parse_tags, preference_labels
from biteinsight.utils.nutrients import format_dri, format_value, net_carbs, parse_nutrient

# Display order of nutrient rows, with the NutrientData attribute feeding each
DISPLAY_ORDER: Tuple[Tuple[str, Optional[str]], ...] = (
    ('energyKcal', 'energy_kcal'),
    ('fat', 'fat'),
    ('saturatedFat', 'saturated_fat'),
    ('carbs', 'carbs'),
    ('sugars', 'sugars'),
    ('fiber', 'fiber'),
    ('proteins', 'proteins'),
    ('netCarbs', None),
    ('salt', 'salt'),
)


def active_profile_tags(
    conditions: Iterable[str],
    allergies: Iterable[str],
    preferences: Iterable[str],
) -> List[ProfileTag]:
    """Known tags of a profile, de-duplicated, in canonical (sorted) order"""
    labels = [*conditions, *allergies, *preference_labels(preferences)]
    return sorted(set(parse_tags(labels)), key=lambda tag: tag.value)


def build_thresholds(
    conditions: Iterable[str],
    allergies: Iterable[str],
    preferences: Iterable[str],
) -> Dict[str, Threshold]:
    """
    Merge default thresholds with the overrides of all active tags.

    Args:
        conditions: Health condition labels
        allergies: Allergy labels
        preferences: Dietary preference codes or display labels

    Returns:
        One Threshold per nutrient key. Unknown tags contribute nothing; an
        empty tag set returns a table equal to the defaults.
    """
    merged = rule_tables.default_thresholds()

    for tag in active_profile_tags(conditions, allergies, preferences):
        for nutrient, patch in rule_tables.threshold_overrides(tag).items():
            current = merged[nutrient]
            if patch.low is not None and patch.low < current.low:
                current.low = patch.low
            if patch.moderate is not None and patch.moderate < current.moderate:
                current.moderate = patch.moderate
            if patch.inverted is not None:
                current.inverted = patch.inverted
            if patch.labels is not None:
                current.labels = patch.labels

    return merged


def rate_nutrient(key: str, value: float, thresholds: Dict[str, Threshold]) -> Tuple[str, str]:
    """
    Rate a per-100g value against its threshold.

    Returns:
        (label, colour). Inverted nutrients (fibre, protein) rate high values
        as good.
    """
    threshold = thresholds[key]
    low_label, moderate_label, high_label = threshold.labels or DEFAULT_RATING_LABELS

    if threshold.inverted:
        if value >= threshold.moderate:
            return high_label, POSITIVE_GREEN
        if value >= threshold.low:
            return moderate_label, OK_YELLOW
        return low_label, NEGATIVE_RED

    if value <= threshold.low:
        return low_label, POSITIVE_GREEN
    if value <= threshold.moderate:
        return moderate_label, POOR_ORANGE
    return high_label, NEGATIVE_RED


def rate_nutrients(data: NutrientData, thresholds: Dict[str, Threshold]) -> List[NutrientRating]:
    """Display rows for every nutrient with a usable value, in display order"""
    names = rule_tables.nutrient_labels()
    units = rule_tables.nutrient_units()
    dri = rule_tables.daily_reference_intake()

    rows = []
    for key, attribute in DISPLAY_ORDER:
        if attribute is None:
            value = net_carbs(data.carbs, data.fiber)
        else:
            value = parse_nutrient(getattr(data, attribute))
        if value is None:
            continue

        label, color = rate_nutrient(key, value, thresholds)
        unit = units.get(key, 'g')
        rows.append(NutrientRating(
            key=key,
            name=names.get(key, key),
            value=value,
            display_value=format_value(value, unit),
            dri_percent=format_dri(value, key, dri),
            label=label,
            color=color,
        ))
    return rows
