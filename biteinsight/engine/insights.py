"""
Insight Selector - Personalised "impact" insights

Each definition declares the profile tags it is relevant to and a small
numeric classifier with four buckets (low / moderate / high / veryHigh).
Only relevant, computable insights are kept; they are ranked by relevance
weight (highest registered weight across the active tags, default 1) and the
top 3 are returned. Ties keep definition order.

Compute functions never guess: a missing required nutrient means no result.
"""

from typing import Iterable, List, Optional

from biteinsight.engine.models import (
    GOOD_LIME,
    NEGATIVE_RED,
    OK_YELLOW,
    POOR_ORANGE,
    POSITIVE_GREEN,
    ImpactBucket,
    InsightDefinition,
    InsightResult,
    NutrientData,
    RankedInsight,
)
from biteinsight.engine.thresholds import active_profile_tags
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.tags import ProfileTag as T
from biteinsight.utils.nutrients import parse_nutrient

MAX_INSIGHTS = 3

BUCKET_LABELS = {
    ImpactBucket.VERY_HIGH: 'Very High',
    ImpactBucket.HIGH: 'High',
    ImpactBucket.MODERATE: 'Moderate',
    ImpactBucket.LOW: 'Low',
}

# Higher is worse
LOAD_COLORS = {
    ImpactBucket.VERY_HIGH: NEGATIVE_RED,
    ImpactBucket.HIGH: POOR_ORANGE,
    ImpactBucket.MODERATE: OK_YELLOW,
    ImpactBucket.LOW: POSITIVE_GREEN,
}

# Higher is better (protein)
BENEFIT_COLORS = {
    ImpactBucket.VERY_HIGH: POSITIVE_GREEN,
    ImpactBucket.HIGH: GOOD_LIME,
    ImpactBucket.MODERATE: OK_YELLOW,
    ImpactBucket.LOW: NEGATIVE_RED,
}


def _result(bucket: ImpactBucket, colors=LOAD_COLORS) -> InsightResult:
    return InsightResult(label=BUCKET_LABELS[bucket], color=colors[bucket], bucket=bucket)


def _bucket_above(score: float, very_high: float, high: float, moderate: float) -> ImpactBucket:
    if score > very_high:
        return ImpactBucket.VERY_HIGH
    if score > high:
        return ImpactBucket.HIGH
    if score > moderate:
        return ImpactBucket.MODERATE
    return ImpactBucket.LOW


def _single(attribute: str, very_high: float, high: float, moderate: float, colors=LOAD_COLORS):
    """Classifier over one nutrient with strict '>' breakpoints"""
    def compute(data: NutrientData) -> Optional[InsightResult]:
        value = parse_nutrient(getattr(data, attribute))
        if value is None:
            return None
        return _result(_bucket_above(value, very_high, high, moderate), colors)
    return compute


# ============================================================================
# COMPUTE FUNCTIONS
# ============================================================================

def glycemic_impact(data: NutrientData) -> Optional[InsightResult]:
    """(sugars * 2 + net carbs) / (fibre + 1); carbs default to sugars"""
    sugars = parse_nutrient(data.sugars)
    if sugars is None:
        return None
    fiber = parse_nutrient(data.fiber) or 0.0
    carbs = parse_nutrient(data.carbs)
    if carbs is None:
        carbs = sugars
    net = max(0.0, carbs - fiber)
    score = (sugars * 2 + net) / (fiber + 1)
    return _result(_bucket_above(score, 30, 15, 5))


def digestive_load(data: NutrientData) -> Optional[InsightResult]:
    """fat + fibre as a proxy for gut stress"""
    fat = parse_nutrient(data.fat)
    if fat is None:
        return None
    fiber = parse_nutrient(data.fiber) or 0.0
    return _result(_bucket_above(fat + fiber, 15, 8, 4))


def inflammatory_fat(data: NutrientData) -> Optional[InsightResult]:
    """Saturated fat plus a quarter of the remaining fat"""
    saturated = parse_nutrient(data.saturated_fat)
    if saturated is None:
        return None
    fat = parse_nutrient(data.fat)
    other_fat = max(0.0, fat - saturated) if fat is not None else 0.0
    return _result(_bucket_above(saturated + 0.25 * other_fat, 10, 5, 2))


def additive_load(data: NutrientData) -> Optional[InsightResult]:
    count = data.additive_count
    if count is None or count < 0:
        return None
    if count >= 5:
        return _result(ImpactBucket.VERY_HIGH)
    if count >= 3:
        return _result(ImpactBucket.HIGH)
    if count >= 1:
        return _result(ImpactBucket.MODERATE)
    return _result(ImpactBucket.LOW)


# ============================================================================
# DEFINITIONS
# ============================================================================

INSIGHT_DEFINITIONS: List[InsightDefinition] = [
    InsightDefinition(
        key='glycemic',
        label='Glycemic impact',
        relevant_to=(T.DIABETES, T.DIABETIC, T.PCOS, T.METABOLIC_SYNDROME,
                     T.LOW_CARB_KETO, T.KETO, T.WEIGHT_LOSS),
        compute=glycemic_impact,
        icon_prefix='glycemic',
    ),
    InsightDefinition(
        key='sodium',
        label='Sodium',
        relevant_to=(T.HYPERTENSION, T.HEART_DISEASE, T.LUPUS, T.METABOLIC_SYNDROME),
        compute=_single('salt', 3, 1.5, 0.3),
        icon_prefix='sodium',
    ),
    InsightDefinition(
        key='saturatedFat',
        label='Saturated fat',
        relevant_to=(T.HEART_DISEASE, T.HIGH_CHOLESTEROL, T.METABOLIC_SYNDROME,
                     T.WEIGHT_LOSS),
        compute=_single('saturated_fat', 10, 5, 1.5),
        icon_prefix='satfat',
    ),
    InsightDefinition(
        key='sugar',
        label='Sugar',
        relevant_to=(T.DIABETES, T.PCOS, T.ADHD, T.AUTISM, T.ECZEMA_PSORIASIS,
                     T.ME_CHRONIC_FATIGUE, T.WEIGHT_LOSS, T.METABOLIC_SYNDROME,
                     T.FRUCTOSE_INTOLERANCE, T.DIABETIC),
        compute=_single('sugars', 22.5, 12.5, 5),
        icon_prefix='sugar',
    ),
    InsightDefinition(
        key='fiber',
        label='Fibre load',
        relevant_to=(T.IBS, T.CROHNS_DISEASE, T.ULCERATIVE_COLITIS, T.SIBO,
                     T.LEAKY_GUT_SYNDROME, T.FODMAP_DIET),
        compute=_single('fiber', 6, 3, 1.5),
        icon_prefix='fiber',
    ),
    InsightDefinition(
        key='protein',
        label='Protein',
        relevant_to=(T.HIGH_PROTEIN_FITNESS, T.POST_BARIATRIC_SURGERY, T.WEIGHT_LOSS),
        compute=_single('proteins', 20, 10, 5, colors=BENEFIT_COLORS),
        icon_prefix='protein',
    ),
    InsightDefinition(
        key='calorie',
        label='Calorie density',
        relevant_to=(T.WEIGHT_LOSS, T.POST_BARIATRIC_SURGERY, T.METABOLIC_SYNDROME),
        compute=_single('energy_kcal', 400, 250, 100),
        icon_prefix='calorie',
    ),
    InsightDefinition(
        key='inflammatoryFat',
        label='Inflammatory fat',
        relevant_to=(T.RHEUMATOID_ARTHRITIS, T.MULTIPLE_SCLEROSIS, T.LUPUS,
                     T.ECZEMA_PSORIASIS),
        compute=inflammatory_fat,
        icon_prefix='inflammation',
    ),
    InsightDefinition(
        key='digestiveLoad',
        label='Digestive load',
        relevant_to=(T.GERD_ACID_REFLUX, T.IBS, T.CROHNS_DISEASE,
                     T.ULCERATIVE_COLITIS, T.LEAKY_GUT_SYNDROME),
        compute=digestive_load,
        icon_prefix='digestion',
    ),
    InsightDefinition(
        key='carbLoad',
        label='Carb load',
        relevant_to=(T.LOW_CARB_KETO, T.KETO, T.DIABETIC),
        compute=_single('carbs', 30, 15, 5),
        icon_prefix='carbload',
    ),
    InsightDefinition(
        key='additives',
        label='Additives',
        relevant_to=(T.CHILD_FRIENDLY, T.ADHD, T.AUTISM, T.ECZEMA_PSORIASIS,
                     T.IBS, T.MIGRAINE, T.CLEAN_EATING),
        compute=additive_load,
        icon_prefix='additive',
    ),
]


def _relevance_weight(key: str, tags: List[T]) -> int:
    registered = [w for w in (rule_tables.insight_weight(tag, key) for tag in tags) if w is not None]
    if not registered:
        return rule_tables.default_insight_weight()
    return max(registered)


def select_insights(
    conditions: Iterable[str],
    allergies: Iterable[str],
    preferences: Iterable[str],
    data: NutrientData,
    limit: int = MAX_INSIGHTS,
) -> List[RankedInsight]:
    """
    Top insights for the active profile, ranked by relevance weight.

    Args:
        conditions: Health condition labels
        allergies: Allergy labels
        preferences: Dietary preference codes or display labels
        data: Per-100g nutrient data (with additive_count)
        limit: Maximum number of insights (default 3)
    """
    tags = active_profile_tags(conditions, allergies, preferences)
    active = set(tags)

    ranked = []
    for definition in INSIGHT_DEFINITIONS:
        if not active.intersection(definition.relevant_to):
            continue
        result = definition.compute(data)
        if result is None:
            continue
        ranked.append(RankedInsight(
            definition=definition,
            result=result,
            weight=_relevance_weight(definition.key, tags),
            explanation=rule_tables.insight_explanation(definition.key),
        ))

    # sorted() is stable, so equal weights keep definition order
    ranked = sorted(ranked, key=lambda r: r.weight, reverse=True)
    return ranked[:limit]
