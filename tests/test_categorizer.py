"""
Tests for the harmful / ok / safe ingredient categorizer.
"""
from biteinsight.engine.categorizer import (
    FLAG_REASON_TEXT,
    categorize_ingredients,
    count_additives,
    describe_ingredient,
    is_additive,
)
from biteinsight.engine.models import FlagReason, Ingredient, TriState


def _texts(items):
    return [i.text for i in items]


class TestCategorizer:

    def test_e_number_is_ok(self):
        lecithin = Ingredient('Soy lecithin', 'en:e322', TriState.YES, TriState.YES)
        result = categorize_ingredients([lecithin], [], [], [])
        assert result.ok == [lecithin]
        assert result.harmful == []
        assert result.safe == []

    def test_allergen_tag_wins_over_every_flag(self):
        milk = Ingredient('Milk', 'en:milk', TriState.NO, TriState.NO)
        result = categorize_ingredients([milk], ['en:milk'], ['vegan', 'vegetarian'], ['milk'])
        assert result.safe == [milk]
        assert result.harmful == []

    def test_flagged_name_matches_whole_words_only(self):
        cane = Ingredient('Sugarcane syrup')
        brown = Ingredient('Brown sugar')
        result = categorize_ingredients([cane, brown], [], [], ['sugar'])

        assert _texts(result.safe) == ['Sugarcane syrup']
        assert len(result.harmful) == 1
        assert result.harmful[0].ingredient is brown
        assert result.harmful[0].reason is FlagReason.USER_FLAGGED

    def test_flagged_name_is_case_insensitive_and_escaped(self):
        item = Ingredient('Vitamin B12 (cobalamin)')
        result = categorize_ingredients([item], [], [], ['  VITAMIN B12 '])
        assert len(result.harmful) == 1

        dotted = Ingredient('E.coli culture')
        result = categorize_ingredients([dotted], [], [], ['e.coli'])
        assert len(result.harmful) == 1

    def test_blank_flagged_names_are_ignored(self):
        result = categorize_ingredients([Ingredient('Salt')], [], [], ['', '   '])
        assert _texts(result.safe) == ['Salt']

    def test_vegan_conflict(self):
        honey = Ingredient('Honey', 'en:honey', TriState.NO, TriState.YES)
        result = categorize_ingredients([honey], [], ['Vegan'], [])
        assert result.harmful[0].reason is FlagReason.VEGAN

    def test_vegetarian_conflict(self):
        gelatine = Ingredient('Gelatine', 'en:gelatin', TriState.NO, TriState.NO)
        result = categorize_ingredients([gelatine], [], ['vegetarian'], [])
        assert result.harmful[0].reason is FlagReason.VEGETARIAN

    def test_vegan_checked_before_user_flag(self):
        gelatine = Ingredient('Gelatine', 'en:gelatin', TriState.NO, TriState.NO)
        result = categorize_ingredients([gelatine], [], ['vegan', 'vegetarian'], ['gelatine'])
        assert result.harmful[0].reason is FlagReason.VEGAN

    def test_unknown_or_maybe_status_is_not_a_conflict(self):
        items = [
            Ingredient('Natural flavouring', 'en:flavouring', TriState.MAYBE, TriState.MAYBE),
            Ingredient('Emulsifier'),
        ]
        result = categorize_ingredients(items, [], ['vegan'], [])
        assert result.harmful == []
        assert _texts(result.safe) == ['Natural flavouring', 'Emulsifier']

    def test_no_preferences_means_no_dietary_flags(self):
        honey = Ingredient('Honey', 'en:honey', TriState.NO, TriState.YES)
        assert categorize_ingredients([honey], [], [], []).safe == [honey]

    def test_every_ingredient_lands_in_exactly_one_bucket(self):
        items = [
            Ingredient('Sugar', 'en:sugar', TriState.YES, TriState.YES),
            Ingredient('Milk', 'en:milk', TriState.NO, TriState.YES),
            Ingredient('Whey', 'en:whey', TriState.NO, TriState.YES),
            Ingredient('Citric acid', 'en:e330', TriState.YES, TriState.YES),
            Ingredient('Palm oil', 'en:palm-oil', TriState.YES, TriState.YES),
            Ingredient('Colour', 'en:e150d'),
            Ingredient('Unknown thing'),
        ]
        result = categorize_ingredients(items, ['en:milk'], ['vegan'], ['palm oil'])

        buckets = [f.ingredient for f in result.harmful] + result.ok + result.safe
        assert len(result) == len(items)
        assert sorted(map(id, buckets)) == sorted(map(id, items))
        assert _texts(f.ingredient for f in result.harmful) == ['Whey', 'Palm oil']
        assert _texts(result.ok) == ['Citric acid', 'Colour']
        assert _texts(result.safe) == ['Sugar', 'Milk', 'Unknown thing']


class TestAdditives:

    def test_count_additives(self):
        items = [
            Ingredient('Soy lecithin', 'en:e322'),
            Ingredient('Caramel colour', 'EN:E150d'),
            Ingredient('Sugar', 'en:sugar'),
            Ingredient('Enzymes', 'en:enzyme'),
            Ingredient('Salt'),
        ]
        assert count_additives(items) == 2

    def test_is_additive(self):
        assert is_additive(Ingredient('x', 'en:e471'))
        assert not is_additive(Ingredient('x', 'fr:e471'))
        assert not is_additive(Ingredient('x'))

    def test_every_reason_has_display_text(self):
        for reason in FlagReason:
            assert FLAG_REASON_TEXT[reason]['title']
            assert FLAG_REASON_TEXT[reason]['body']


class TestDescribeIngredient:

    def test_id_lookup(self):
        description = describe_ingredient(Ingredient('Emulsifier', 'en:e322'))
        assert description['what'].startswith('Lecithin')
        assert description['why']

    def test_id_wins_over_name(self):
        by_id = describe_ingredient(Ingredient('soy lecithin', 'en:E322'))
        assert by_id['what'].startswith('Lecithin')

    def test_name_lookup(self):
        description = describe_ingredient(Ingredient('  Soy Lecithin '))
        assert description['what'] == 'A natural emulsifier extracted from soybeans.'

    def test_e_number_variant_id(self):
        description = describe_ingredient(Ingredient('Emulsifier', 'en:e476i'))
        assert description['what'].startswith('Polyglycerol polyricinoleate')

    def test_unknown_ingredient(self):
        assert describe_ingredient(Ingredient('Cocoa butter', 'en:cocoa-butter')) is None
        assert describe_ingredient(Ingredient('', 'en:e9999')) is None
