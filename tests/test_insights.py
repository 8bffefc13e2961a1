"""
Tests for impact insight computation, relevance and ranking.
"""
import pytest

from biteinsight.engine import insights
from biteinsight.engine.insights import (
    INSIGHT_DEFINITIONS,
    MAX_INSIGHTS,
    additive_load,
    digestive_load,
    glycemic_impact,
    inflammatory_fat,
    select_insights,
)
from biteinsight.engine.models import (
    INSIGHT_KEYS,
    NEGATIVE_RED,
    POSITIVE_GREEN,
    ImpactBucket,
    NutrientData,
)
from biteinsight.knowledge import rule_tables

FULL_DATA = NutrientData(
    sugars=30, fiber=4, carbs=50, salt=2, fat=20, saturated_fat=8,
    proteins=12, energy_kcal=450, additive_count=4,
)

DEFINITIONS = {d.key: d for d in INSIGHT_DEFINITIONS}


def _keys(ranked):
    return [r.definition.key for r in ranked]


class TestComputeFunctions:

    def test_glycemic_very_high(self):
        # (40 * 2 + (45 - 2)) / (2 + 1) = 41
        result = glycemic_impact(NutrientData(sugars=40, fiber=2, carbs=45))
        assert result.bucket is ImpactBucket.VERY_HIGH
        assert result.label == 'Very High'
        assert result.color == NEGATIVE_RED

    def test_glycemic_needs_sugars(self):
        assert glycemic_impact(NutrientData(fiber=2, carbs=45)) is None

    def test_glycemic_carbs_default_to_sugars(self):
        # (3 * 2 + 3) / 1 = 9
        assert glycemic_impact(NutrientData(sugars=3)).bucket is ImpactBucket.MODERATE

    @pytest.mark.parametrize('salt, bucket', [
        (0.2, ImpactBucket.LOW),
        (0.3, ImpactBucket.LOW),
        (1.0, ImpactBucket.MODERATE),
        (2, ImpactBucket.HIGH),
        (3, ImpactBucket.HIGH),
        (3.5, ImpactBucket.VERY_HIGH),
    ])
    def test_sodium_buckets(self, salt, bucket):
        assert DEFINITIONS['sodium'].compute(NutrientData(salt=salt)).bucket is bucket

    def test_sodium_unparseable_value(self):
        assert DEFINITIONS['sodium'].compute(NutrientData(salt='n/a')) is None

    @pytest.mark.parametrize('count, bucket', [
        (0, ImpactBucket.LOW),
        (1, ImpactBucket.MODERATE),
        (3, ImpactBucket.HIGH),
        (5, ImpactBucket.VERY_HIGH),
    ])
    def test_additive_buckets(self, count, bucket):
        assert additive_load(NutrientData(additive_count=count)).bucket is bucket

    def test_additives_without_count(self):
        assert additive_load(NutrientData()) is None
        assert additive_load(NutrientData(additive_count=-1)) is None

    def test_protein_colours_are_inverted(self):
        high = DEFINITIONS['protein'].compute(NutrientData(proteins=25))
        low = DEFINITIONS['protein'].compute(NutrientData(proteins=2))
        assert (high.bucket, high.color) == (ImpactBucket.VERY_HIGH, POSITIVE_GREEN)
        assert (low.bucket, low.color) == (ImpactBucket.LOW, NEGATIVE_RED)

    def test_digestive_load_fibre_defaults_to_zero(self):
        assert digestive_load(NutrientData(fat=5)).bucket is ImpactBucket.MODERATE
        assert digestive_load(NutrientData(fiber=20)) is None

    def test_inflammatory_fat(self):
        # 4 + 0.25 * (12 - 4) = 6
        assert inflammatory_fat(NutrientData(saturated_fat=4, fat=12)).bucket is ImpactBucket.HIGH
        assert inflammatory_fat(NutrientData(saturated_fat=4)).bucket is ImpactBucket.MODERATE
        assert inflammatory_fat(NutrientData(fat=12)) is None

    def test_definitions_cover_every_insight_key(self):
        assert [d.key for d in INSIGHT_DEFINITIONS] == list(INSIGHT_KEYS)

    def test_icon_names(self):
        assert DEFINITIONS['glycemic'].icon_for(ImpactBucket.VERY_HIGH) == 'glycemic-very-high'
        assert DEFINITIONS['additives'].icon_for(ImpactBucket.LOW) == 'additive-low'


class TestSelectInsights:

    def test_glycemic_absent_without_sugars(self):
        ranked = select_insights(['Diabetes'], [], [], NutrientData(carbs=45, fiber=2))
        assert 'glycemic' not in _keys(ranked)

    def test_never_more_than_three(self):
        ranked = select_insights(
            ['Metabolic Syndrome', 'Heart Disease', 'IBS', 'ADHD'], [], ['Weight Loss'], FULL_DATA
        )
        assert len(ranked) == MAX_INSIGHTS

    def test_ranked_by_weight(self):
        ranked = select_insights(['Heart Disease'], [], [], FULL_DATA)
        assert _keys(ranked) == ['saturatedFat', 'sodium']
        assert [r.weight for r in ranked] == [10, 9]

    def test_weight_is_max_over_active_tags(self):
        ranked = select_insights(['Heart Disease', 'Hypertension'], [], [], FULL_DATA)
        sodium = next(r for r in ranked if r.definition.key == 'sodium')
        assert sodium.weight == 10

    def test_weight_counts_tags_outside_the_relevance_list(self):
        # Migraine is not relevant to sodium but registers weight 8 for it
        ranked = select_insights(
            ['Metabolic Syndrome', 'Migraine / Chronic Headaches'], [], [], FULL_DATA, limit=11
        )
        sodium = next(r for r in ranked if r.definition.key == 'sodium')
        assert sodium.weight == 8

    def test_equal_weights_keep_definition_order(self, monkeypatch):
        monkeypatch.setattr(rule_tables, 'insight_weight', lambda tag, key: None)
        ranked = select_insights(['Metabolic Syndrome'], [], [], FULL_DATA)
        assert _keys(ranked) == ['glycemic', 'sodium', 'saturatedFat']
        assert all(r.weight == 1 for r in ranked)

    def test_preference_codes_count_as_tags(self):
        ranked = select_insights([], [], ['keto'], FULL_DATA)
        assert _keys(ranked) == ['carbLoad', 'glycemic']

    def test_allergies_count_as_tags(self):
        ranked = select_insights([], ['Fructose Intolerance'], [], FULL_DATA)
        assert _keys(ranked) == ['sugar']

    def test_irrelevant_profile_gets_nothing(self):
        assert select_insights([], ['Peanut Allergy'], ['Made Up'], FULL_DATA) == []

    def test_kidney_disease_has_no_sodium_insight(self):
        assert 'sodium' not in _keys(select_insights(['Kidney Disease'], [], [], FULL_DATA))

    def test_every_insight_is_explained(self):
        ranked = select_insights(
            ['Metabolic Syndrome', 'Heart Disease', 'IBS'], [], ['keto'], FULL_DATA, limit=11
        )
        assert all(r.explanation for r in ranked)
        for key in INSIGHT_KEYS:
            assert rule_tables.insight_explanation(key)

    def test_to_dict(self):
        ranked = select_insights(['Hypertension'], [], [], FULL_DATA)
        assert ranked[0].to_dict() == {
            'key': 'sodium',
            'title': 'Sodium',
            'label': 'High',
            'color': insights.POOR_ORANGE,
            'bucket': 'high',
            'icon': 'sodium-high',
            'weight': 10,
            'explanation': rule_tables.insight_explanation('sodium'),
        }
        assert ranked[0].to_dict()['explanation'].startswith('Sodium levels')
