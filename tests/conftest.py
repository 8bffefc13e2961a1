"""
Shared fixtures for the scan analysis tests.
"""
import json
from pathlib import Path

import pytest

from biteinsight.engine.models import Profile
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.ingredient_facts import reset_lookup


@pytest.fixture(autouse=True)
def packaged_reference_data(monkeypatch):
    """Every test starts from the packaged rule tables with empty caches."""
    monkeypatch.delenv('BITEINSIGHT_REFERENCE_DATA', raising=False)
    rule_tables.clear_cache()
    reset_lookup()
    yield
    rule_tables.clear_cache()
    reset_lookup()


@pytest.fixture
def off_payload():
    """Open Food Facts style response for a chocolate bar."""
    return {
        'code': '5000159484695',
        'status': 1,
        'product': {
            'product_name': 'Choco Bar',
            'brands': 'Acme',
            'ingredients_text_en': 'Sugar, whole milk powder, cocoa butter, peanuts, soy lecithin, salt',
            'allergens_tags': ['en:milk', 'en:peanuts', 'en:soybeans'],
            'ingredients': [
                {'id': 'en:sugar', 'text': 'Sugar', 'vegan': 'yes', 'vegetarian': 'yes'},
                {'id': 'en:whole-milk-powder', 'text': 'whole _milk_ powder', 'vegan': 'no', 'vegetarian': 'yes'},
                {'id': 'en:cocoa-butter', 'text': 'cocoa butter', 'vegan': 'yes', 'vegetarian': 'yes'},
                {'id': 'en:peanut', 'text': 'peanuts', 'vegan': 'yes', 'vegetarian': 'yes'},
                {'id': 'en:e322', 'text': 'soy lecithin', 'vegan': 'yes', 'vegetarian': 'yes'},
                {'id': 'en:salt', 'text': 'salt', 'vegan': 'yes', 'vegetarian': 'yes'},
            ],
            'nutriscore_grade': 'e',
            'quantity': '100 g',
            'serving_size': '25 g',
            'nutriments': {
                'energy-kcal_100g': 540,
                'fat_100g': 31,
                'saturated-fat_100g': 18,
                'carbohydrates_100g': 55,
                'sugars_100g': 52,
                'fiber_100g': 2.5,
                'proteins_100g': 7,
                'salt_100g': 0.25,
                'energy-kcal_serving': 135,
                'sugars_serving': 13,
            },
        },
    }


@pytest.fixture
def diabetic_vegan_profile():
    return Profile(
        conditions=['Diabetes'],
        allergies=['Peanut Allergy'],
        dietary_preferences=['vegan'],
        flagged_ingredients=['salt'],
        name='Sam',
    )


@pytest.fixture
def local_data_dir(tmp_path, monkeypatch):
    """Local storage rooted in a temporary data directory."""
    monkeypatch.setenv('STORAGE_MODE', 'local')
    monkeypatch.setenv('DATA_PATH', str(tmp_path))
    (tmp_path / 'input').mkdir()
    return tmp_path


def write_json_file(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding='utf-8')
    return path
