"""
Tests for profile tags, settings and the rule table loaders.
"""
import json

import pytest

from biteinsight.core import settings
from biteinsight.engine.models import FlagReason, INSIGHT_KEYS, NUTRIENT_KEYS
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.tags import (
    ProfileTag,
    parse_tags,
    preference_codes,
    preference_labels,
)


class TestProfileTags:

    def test_known_label_parses(self):
        assert ProfileTag.parse('Diabetes') is ProfileTag.DIABETES
        assert ProfileTag.parse("Chron's Disease") is ProfileTag.CROHNS_DISEASE

    def test_unknown_or_non_string_label_is_other(self):
        assert ProfileTag.parse('Diabetis') is ProfileTag.OTHER
        assert ProfileTag.parse('diabetes') is ProfileTag.OTHER
        assert ProfileTag.parse(None) is ProfileTag.OTHER
        assert ProfileTag.parse(42) is ProfileTag.OTHER

    def test_parse_tags_drops_unknown(self):
        assert parse_tags(['IBS', 'Made Up', 'Vegan']) == [ProfileTag.IBS, ProfileTag.VEGAN]

    def test_preference_codes_map_to_labels(self):
        assert preference_labels(['vegan', 'gluten-free', 'Weight Loss']) == [
            'Vegan', 'Gluten-free', 'Weight Loss'
        ]

    def test_preference_labels_map_to_codes(self):
        assert preference_codes(['Vegan', 'vegetarian', 'Paleo']) == ['vegan', 'vegetarian', 'Paleo']


class TestSettings:

    def test_reference_dir_defaults_to_package(self):
        assert settings.reference_data_dir() == settings.PACKAGE_REFERENCE_DATA

    def test_reference_dir_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv('BITEINSIGHT_REFERENCE_DATA', str(tmp_path))
        assert settings.reference_data_dir() == tmp_path

    def test_output_bucket_defaults_to_input_bucket(self, monkeypatch):
        monkeypatch.setenv('S3_INPUT_BUCKET', 'scans-in')
        monkeypatch.delenv('S3_OUTPUT_BUCKET', raising=False)
        assert settings.s3_config()['output_bucket'] == 'scans-in'


class TestPackagedTables:

    def test_all_tables_load(self):
        rule_tables.load_all()

    def test_defaults_cover_every_nutrient(self):
        table = rule_tables.default_thresholds()
        assert set(table) == set(NUTRIENT_KEYS)
        assert table['fiber'].inverted is True
        assert table['proteins'].labels == ('Low', 'Moderate', 'Good')

    def test_default_thresholds_are_fresh_copies(self):
        first = rule_tables.default_thresholds()
        first['sugars'].low = -100
        assert rule_tables.default_thresholds()['sugars'].low == 5

    def test_overrides_for_unregistered_tag_are_empty(self):
        assert rule_tables.threshold_overrides(ProfileTag.OTHER) == {}
        assert rule_tables.threshold_overrides(ProfileTag.PEANUT_ALLERGY) == {}

    def test_allergy_entries_are_lowercased(self):
        entry = rule_tables.allergy_entry(ProfileTag.SOY_ALLERGY)
        assert 'soy' in entry.tags
        assert 'e322' in entry.keywords
        assert all(k == k.lower() for k in entry.keywords)

    def test_insight_weights(self):
        assert rule_tables.insight_weight(ProfileTag.DIABETES, 'glycemic') == 10
        assert rule_tables.insight_weight(ProfileTag.DIABETES, 'protein') is None
        assert rule_tables.default_insight_weight() == 1

    def test_weight_keys_are_insight_keys(self):
        for tag in ProfileTag:
            for key in INSIGHT_KEYS:
                weight = rule_tables.insight_weight(tag, key)
                assert weight is None or weight >= 1

    def test_substitute_tables(self):
        assert 'milk' in rule_tables.dietary_substitutes(FlagReason.VEGAN)
        assert rule_tables.dietary_substitutes(FlagReason.USER_FLAGGED) == {}
        assert 'peanut' in rule_tables.allergen_substitutes(ProfileTag.PEANUT_ALLERGY)
        assert 'sugar' in rule_tables.condition_substitutes(ProfileTag.DIABETES)

    def test_description_tables(self):
        assert rule_tables.ingredient_description('en:e330')['what'].startswith('Citric acid')
        assert rule_tables.ingredient_description('citric acid')['why']
        assert rule_tables.ingredient_description('en:e330i') is None
        assert rule_tables.insight_explanation('unknown') == ''


class TestTableValidation:

    def _use_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv('BITEINSIGHT_REFERENCE_DATA', str(tmp_path))
        rule_tables.clear_cache()

    def test_missing_file_raises(self, tmp_path, monkeypatch):
        self._use_dir(tmp_path, monkeypatch)
        with pytest.raises(FileNotFoundError, match='condition_overrides.json'):
            rule_tables.threshold_overrides(ProfileTag.DIABETES)

    def test_unknown_tag_raises(self, tmp_path, monkeypatch):
        self._use_dir(tmp_path, monkeypatch)
        (tmp_path / 'condition_overrides.json').write_text(
            json.dumps({'overrides': {'Diabetis': {'sugars': {'low': 1}}}})
        )
        with pytest.raises(ValueError, match='Diabetis'):
            rule_tables.threshold_overrides(ProfileTag.DIABETES)

    def test_unknown_override_field_raises(self, tmp_path, monkeypatch):
        self._use_dir(tmp_path, monkeypatch)
        (tmp_path / 'condition_overrides.json').write_text(
            json.dumps({'overrides': {'Diabetes': {'sugars': {'lo': 1}}}})
        )
        with pytest.raises(ValueError, match='lo'):
            rule_tables.threshold_overrides(ProfileTag.DIABETES)

    def test_unknown_insight_key_raises(self, tmp_path, monkeypatch):
        self._use_dir(tmp_path, monkeypatch)
        (tmp_path / 'insight_weights.json').write_text(
            json.dumps({'weights': {'Diabetes': {'glycaemic': 3}}})
        )
        with pytest.raises(ValueError, match='glycaemic'):
            rule_tables.insight_weight(ProfileTag.DIABETES, 'glycemic')

    def test_unknown_explanation_key_raises(self, tmp_path, monkeypatch):
        self._use_dir(tmp_path, monkeypatch)
        (tmp_path / 'ingredient_descriptions.json').write_text(
            json.dumps({'ingredients': {}, 'insights': {'sodiumm': 'text'}})
        )
        with pytest.raises(ValueError, match='sodiumm'):
            rule_tables.insight_explanation('sodium')

    def test_description_needs_what_and_why(self, tmp_path, monkeypatch):
        self._use_dir(tmp_path, monkeypatch)
        (tmp_path / 'ingredient_descriptions.json').write_text(
            json.dumps({'ingredients': {'en:e330': {'what': 'Citric acid'}}})
        )
        with pytest.raises(ValueError, match='en:e330'):
            rule_tables.ingredient_description('en:e330')
