"""
Result Builder - Per-scan result dictionaries for the output JSON

Every scan of a batch yields exactly one result with a status of
'success' or 'error', its batch index, product code and processing time.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List

from biteinsight.engine.categorizer import describe_ingredient
from biteinsight.engine.models import Ingredient, ScanAnalysis

# step_completed values
STEP_NONE = 0
STEP_NORMALISED = 1
STEP_ANALYSED = 2


def _elapsed(start_time: datetime) -> float:
    return (datetime.now() - start_time).total_seconds()


def _described(ingredients: List[Ingredient]) -> List[Dict[str, Any]]:
    """ok / safe rows with their what/why text (None when unknown)"""
    return [
        {'ingredient': i.text, 'id': i.id, 'description': describe_ingredient(i)}
        for i in ingredients
    ]


def build_error_result(
    result: Dict[str, Any],
    error_message: str,
    step_completed: int,
    start_time: datetime
) -> Dict[str, Any]:
    """
    Mark a scan result as failed

    Args:
        result: Base result dict (index, code)
        error_message: Error message
        step_completed: STEP_NONE, or STEP_NORMALISED when the payload was
            normalised but analysis failed
        start_time: Scan start time

    Returns:
        Updated result dict
    """
    result.update({
        'status': 'error',
        'error': error_message,
        'step_completed': step_completed,
        'processing_time_sec': _elapsed(start_time),
    })
    return result


def build_success_result(
    result: Dict[str, Any],
    analysis: ScanAnalysis,
    harmful: List[Dict[str, Any]],
    start_time: datetime
) -> Dict[str, Any]:
    """
    Fill a scan result from a finished analysis

    Args:
        result: Base result dict (index, code)
        analysis: Engine output for the scan
        harmful: Harmful ingredient rows, substitutes included
        start_time: Scan start time

    Returns:
        Updated result dict
    """
    result.update({
        'status': 'success',
        'step_completed': STEP_ANALYSED,
        'processing_time_sec': _elapsed(start_time),
        'summary': analysis.summary(),
        'harmful': harmful,
        'ok': _described(analysis.categorized.ok),
        'safe': _described(analysis.categorized.safe),
        'matched_allergens': analysis.matched_allergens,
        'allergen_names': analysis.allergen_names,
        'insights': [i.to_dict() for i in analysis.insights],
        'ratings_100g': [asdict(r) for r in analysis.ratings_100g],
        'ratings_serving': [asdict(r) for r in analysis.ratings_serving],
        'nutriscore': analysis.nutriscore,
    })
    return result
