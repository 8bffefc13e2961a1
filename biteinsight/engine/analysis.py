"""
Scan Analysis - One product, one profile

Runs the main pass in dependency order:
    ingredients text + structured records -> hybrid matcher
    hybrid ingredients -> categorizer, additive count
    profile tags -> thresholds -> nutrient ratings
    profile tags + per-100g nutrients -> insights
    profile allergies + product allergen data -> allergen matcher

Pure: no I/O, no logging. Substitutes are computed on demand with
substitutes_for(), never during the main pass.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from biteinsight.engine.allergen_matcher import match_allergens
from biteinsight.engine.categorizer import categorize_ingredients, count_additives
from biteinsight.engine.hybrid_matcher import build_hybrid_ingredients
from biteinsight.engine.insights import select_insights
from biteinsight.engine.models import (
    FlaggedIngredient,
    Ingredient,
    Product,
    Profile,
    ScanAnalysis,
)
from biteinsight.engine.substitutes import get_substitutes
from biteinsight.engine.thresholds import build_thresholds, rate_nutrients
from biteinsight.utils.ingredient_text import (
    allergen_display_names,
    collect_ingredient_ids,
    decode_structured_ingredients,
    parse_ingredients_text,
    prepare_structured_ingredients,
)
from biteinsight.utils.nutrients import nutriscore_display, serving_is_100g


def unify_ingredients(
    product: Product,
    records: Optional[List[Dict[str, Any]]] = None,
) -> List[Ingredient]:
    """
    Clean display names from the text, carrying structured record metadata.

    Args:
        product: Normalised product
        records: Already decoded structured records; decoded from the
            product when omitted
    """
    if records is None:
        records = decode_structured_ingredients(product.structured_ingredients)
    names = parse_ingredients_text(product.ingredients_text)
    records = prepare_structured_ingredients(records)
    structured = [Ingredient.from_dict(r) for r in records]
    return build_hybrid_ingredients(names, structured)


def analyze_scan(product: Product, profile: Profile) -> ScanAnalysis:
    """
    Classify one scanned product for one profile.

    Args:
        product: Normalised product (see product_from_off)
        profile: Active profile

    Returns:
        ScanAnalysis with categorized ingredients, matched allergens,
        thresholds, nutrient ratings, insights and Nutri-score display
    """
    # Structured records may arrive as JSON text; decode once for every consumer
    records = decode_structured_ingredients(product.structured_ingredients)
    ingredients = unify_ingredients(product, records)

    categorized = categorize_ingredients(
        ingredients,
        product.allergen_tags,
        profile.dietary_preferences,
        profile.flagged_ingredients,
    )
    additive_count = count_additives(ingredients)

    thresholds = build_thresholds(
        profile.conditions, profile.allergies, profile.dietary_preferences
    )
    ratings_100g = rate_nutrients(product.nutrients_100g, thresholds)
    ratings_serving = []
    if product.nutrients_serving.has_any() and not serving_is_100g(product.serving_size):
        ratings_serving = rate_nutrients(product.nutrients_serving, thresholds)

    insights = select_insights(
        profile.conditions,
        profile.allergies,
        profile.dietary_preferences,
        replace(product.nutrients_100g, additive_count=additive_count),
    )

    matched = match_allergens(
        profile.allergies,
        product.allergen_tags,
        product.ingredients_text,
        collect_ingredient_ids(records),
    )

    return ScanAnalysis(
        product=product,
        ingredients=ingredients,
        categorized=categorized,
        matched_allergens=matched,
        allergen_names=allergen_display_names(product.allergen_tags),
        thresholds=thresholds,
        ratings_100g=ratings_100g,
        ratings_serving=ratings_serving,
        insights=insights,
        additive_count=additive_count,
        nutriscore=nutriscore_display(product.nutriscore_grade),
    )


def substitutes_for(flagged: FlaggedIngredient, profile: Profile) -> List[str]:
    """Substitute suggestions for one harmful ingredient of an analysis"""
    return get_substitutes(
        flagged.ingredient.text,
        flagged.reason,
        conditions=profile.conditions,
        allergies=profile.allergies,
    )
