"""
Nutrient helpers - lenient number parsing, display formatting and
Open Food Facts payload normalisation
"""

import math
import re
from typing import Any, Dict, Optional

from biteinsight.engine.models import (
    GOOD_LIME,
    NEGATIVE_RED,
    OK_YELLOW,
    POOR_ORANGE,
    POSITIVE_GREEN,
    NumberLike,
    NutrientData,
    Product,
)
from biteinsight.knowledge.rule_tables import daily_reference_intake

MISSING_VALUE = '—'

_LEADING_FLOAT = re.compile(r'^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?')
_SERVING_100G = re.compile(r'\b100\s*(g|ml)\b', re.IGNORECASE)

NUTRISCORE_LABELS = {
    'a': 'Amazing',
    'b': 'Good',
    'c': 'OK',
    'd': 'Poor',
    'e': 'Bad',
}

NUTRISCORE_COLORS = {
    'a': POSITIVE_GREEN,
    'b': GOOD_LIME,
    'c': OK_YELLOW,
    'd': POOR_ORANGE,
    'e': NEGATIVE_RED,
}

# Open Food Facts nutriment field -> NutrientData attribute
OFF_NUTRIMENT_FIELDS = {
    'energy-kcal': 'energy_kcal',
    'carbohydrates': 'carbs',
    'sugars': 'sugars',
    'fiber': 'fiber',
    'fat': 'fat',
    'saturated-fat': 'saturated_fat',
    'proteins': 'proteins',
    'salt': 'salt',
}


def parse_nutrient(raw: NumberLike) -> Optional[float]:
    """
    Parse a nutrient value the way the product provider delivers it.

    Accepts numbers and strings with a leading number ("12.5", "3 g").
    Returns None for absent, unparseable, non-finite or negative values.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _LEADING_FLOAT.match(str(raw))
        if not match:
            return None
        value = float(match.group(0))

    if not math.isfinite(value) or value < 0:
        return None
    return value


def net_carbs(carbs: NumberLike, fiber: NumberLike) -> Optional[float]:
    """Carbohydrates minus fibre, floored at 0. Carbs alone when fibre is missing."""
    carbs_value = parse_nutrient(carbs)
    if carbs_value is None:
        return None
    fiber_value = parse_nutrient(fiber)
    if fiber_value is None:
        return carbs_value
    return max(0.0, carbs_value - fiber_value)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_value(raw: NumberLike, unit: str) -> str:
    """Display string for a nutrient amount, e.g. '12g', '3.4g', '<0.1g', '250kcal'"""
    value = parse_nutrient(raw)
    if value is None:
        return MISSING_VALUE
    if unit == 'kcal':
        return f"{_round_half_up(value)}{unit}"
    if value < 0.1:
        return f"<0.1{unit}"
    if value < 10:
        return f"{value:.1f}{unit}"
    return f"{_round_half_up(value)}{unit}"


def format_dri(raw: NumberLike, key: str, dri: Optional[Dict[str, float]] = None) -> str:
    """Percentage of the daily reference intake, e.g. '15%'"""
    if dri is None:
        dri = daily_reference_intake()
    if key not in dri or not dri[key]:
        return MISSING_VALUE
    value = parse_nutrient(raw)
    if value is None:
        return MISSING_VALUE
    return f"{_round_half_up(value / dri[key] * 100)}%"


def serving_is_100g(serving_size: Optional[str]) -> bool:
    """True when the declared serving is effectively 100 g / 100 ml"""
    if not serving_size:
        return False
    return bool(_SERVING_100G.search(serving_size))


def nutriscore_display(grade: Optional[str]) -> Optional[Dict[str, str]]:
    """Label and colour for a Nutri-score grade; None when ungraded"""
    if not grade:
        return None
    grade = grade.strip().lower()
    if grade not in NUTRISCORE_LABELS:
        return None
    return {
        'grade': grade,
        'label': NUTRISCORE_LABELS[grade],
        'color': NUTRISCORE_COLORS[grade],
    }


def _nutrient_data(nutriments: Dict[str, Any], suffix: str) -> NutrientData:
    values = {}
    for off_key, attribute in OFF_NUTRIMENT_FIELDS.items():
        values[attribute] = nutriments.get(f"{off_key}_{suffix}")
    return NutrientData(**values)


def product_from_off(payload: Dict[str, Any]) -> Product:
    """
    Normalise an Open Food Facts API response (or its `product` object).

    Raises:
        ValueError: If the payload carries no usable product at all
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Product payload must be an object, got {type(payload).__name__}")

    if payload.get('status') == 0:
        raise ValueError(f"Product not found: {payload.get('code') or 'unknown code'}")

    data = payload.get('product') if isinstance(payload.get('product'), dict) else payload
    code = payload.get('code') or data.get('code')

    nutriments = data.get('nutriments') or {}
    text_en = data.get('ingredients_text_en') or ''
    ingredients_text = text_en or data.get('ingredients_text') or ''

    if not (code or data.get('product_name') or ingredients_text or nutriments):
        raise ValueError("Product payload has no code, name, ingredients or nutriments")

    allergen_tags = data.get('allergens_tags')
    if not isinstance(allergen_tags, list):
        allergen_tags = [a.strip() for a in str(data.get('allergens') or '').split(',') if a.strip()]

    structured = data.get('ingredients')
    if not isinstance(structured, list):
        structured = []

    return Product(
        code=str(code) if code else None,
        name=data.get('product_name') or '',
        brand=data.get('brands') or '',
        ingredients_text=ingredients_text,
        allergen_tags=[str(t) for t in allergen_tags],
        structured_ingredients=structured,
        lang='en' if text_en else (data.get('lang') or data.get('lc') or 'en'),
        nutriscore_grade=data.get('nutriscore_grade') or data.get('nutrition_grade_fr'),
        quantity=data.get('quantity') or '',
        serving_size=data.get('serving_size') or '',
        nutrients_100g=_nutrient_data(nutriments, '100g'),
        nutrients_serving=_nutrient_data(nutriments, 'serving'),
    )
