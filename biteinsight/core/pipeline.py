"""
Pipeline Orchestrator - Runs the scan analysis over a batch file

Responsibilities:
- Reads a scan batch (JSON) through the storage client
- Normalises each Open Food Facts payload and analyses it for one profile
- Handles ALL logging and file management
- Tracks progress and per-scan errors (a failing scan never stops the batch)

Engine components do NOT log or create files - pipeline does everything.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from biteinsight.clients.storage_client import StorageClient, create_storage_client_from_env
from biteinsight.core import settings
from biteinsight.core.log_manager import LogManager
from biteinsight.core.result_builder import (
    STEP_NONE,
    STEP_NORMALISED,
    build_error_result,
    build_success_result,
)
from biteinsight.engine.analysis import analyze_scan, substitutes_for
from biteinsight.engine.categorizer import FLAG_REASON_TEXT
from biteinsight.engine.models import Profile, ScanAnalysis
from biteinsight.knowledge import rule_tables
from biteinsight.knowledge.ingredient_facts import lookup_ingredient_fact
from biteinsight.utils.nutrients import product_from_off

STEP_NAME = 'step1_scan_analysis'

SUMMARY_COLUMNS = [
    'index', 'code', 'status', 'error', 'name', 'ingredients', 'harmful', 'ok', 'safe',
    'matched_allergens', 'additive_count', 'insights', 'nutriscore', 'processing_time_sec',
]
HARMFUL_COLUMNS = ['code', 'ingredient', 'ingredient_id', 'reason', 'reason_title', 'substitutes', 'fact']
INSIGHT_COLUMNS = ['code', 'rank', 'key', 'title', 'label', 'bucket', 'color', 'icon', 'weight']


def extract_scans(batch: Any) -> List[Any]:
    """Scan payloads of a batch: a JSON list, or an object with a 'scans' list"""
    if isinstance(batch, list):
        return batch
    if isinstance(batch, dict) and isinstance(batch.get('scans'), list):
        return batch['scans']
    raise ValueError("Scan batch must be a list or an object with a 'scans' list")


class ScanPipeline:

    def __init__(self, storage: Optional[StorageClient] = None, base_path: Optional[str] = None):
        self.storage = storage or create_storage_client_from_env()
        self.base_path = base_path or settings.data_path()

    def process_file(self, filename: str, profile: Profile) -> Dict[str, Any]:
        """
        Analyse every scan of a batch file for one profile.

        Returns:
            Run summary (counts, output location, run id)
        """
        print(f"\n{'='*70}")
        print(f"PROCESSING: {filename}")
        print(f"{'='*70}")

        # Fail fast on broken reference data, before any run folder exists
        rule_tables.load_all()

        scans = extract_scans(self.storage.read_json(filename))
        print(f"\nLoaded: {len(scans):,} scans")

        logger = LogManager(filename, base_path=self.base_path)
        print(f"Run: {logger.run_id}")
        print(f"Logs: {logger.logs_path}")
        print(f"Audit: {logger.audit_path}")

        logger.log_step_start(STEP_NAME, "STEP 1: SCAN ANALYSIS")
        logger.log_step(STEP_NAME, f"Input: {len(scans):,} scans")
        logger.log_step(STEP_NAME, f"Profile: {profile.name or 'unnamed'} | "
                                   f"conditions={profile.conditions} allergies={profile.allergies} "
                                   f"preferences={profile.dietary_preferences} "
                                   f"flagged={len(profile.flagged_ingredients)}")

        results = []
        harmful_rows = []
        insight_rows = []
        for index, payload in enumerate(scans):
            result, analysis = self._process_scan(index, payload, profile)
            results.append(result)

            if analysis is None:
                logger.log_step(STEP_NAME, f"  [{index}] ERROR: {result['error']}")
                continue

            summary = analysis.summary()
            logger.log_step(
                STEP_NAME,
                f"  [{index}] {summary['code']} | harmful={summary['harmful']} ok={summary['ok']} "
                f"safe={summary['safe']} | allergens={summary['matched_allergens'] or '-'} "
                f"| insights={summary['insights'] or '-'}"
            )
            harmful_rows.extend(self._harmful_rows(analysis, result['harmful']))
            insight_rows.extend(self._insight_rows(analysis))

        success_count = sum(1 for r in results if r['status'] == 'success')
        error_count = len(results) - success_count

        logger.log_step(STEP_NAME, "")
        logger.log_step(STEP_NAME, "Results:")
        logger.log_step(STEP_NAME, f"  Analysed: {success_count:,}")
        logger.log_step(STEP_NAME, f"  Errors:   {error_count:,}")

        logger.save_audit_csv(STEP_NAME, self._summary_frame(results), 'scan_summary.csv')
        logger.save_audit_csv(STEP_NAME, pd.DataFrame(harmful_rows, columns=HARMFUL_COLUMNS),
                              'harmful_ingredients.csv')
        logger.save_audit_csv(STEP_NAME, pd.DataFrame(insight_rows, columns=INSIGHT_COLUMNS),
                              'insights.csv')
        logger.log_step_end(STEP_NAME)

        output_location = self.storage.write_json(
            {'profile': profile.name, 'run_id': logger.run_id, 'results': results},
            f"analysed_{logger.file_id}.json",
        )

        run_summary = {
            'total_scans': len(scans),
            'analysed': success_count,
            'errors': error_count,
            'harmful_ingredients': len(harmful_rows),
            'insights': len(insight_rows),
            'output': output_location,
        }
        logger.save_run_manifest(run_summary)

        print(f"\n{'='*70}")
        print("PROCESSING COMPLETE")
        print(f"{'='*70}")
        print(f"Total: {len(scans):,}")
        print(f"Analysed: {success_count:,}")
        print(f"Errors: {error_count:,}")
        print(f"Output: {output_location}")

        return {**run_summary, 'run_id': logger.run_id, 'audit_path': str(logger.audit_path)}

    def _process_scan(self, index: int, payload: Any, profile: Profile):
        start_time = datetime.now()
        result: Dict[str, Any] = {'index': index, 'code': None}
        step_completed = STEP_NONE

        try:
            product = product_from_off(payload)
            result['code'] = product.code
            step_completed = STEP_NORMALISED

            analysis = analyze_scan(product, profile)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            return build_error_result(result, str(e), step_completed, start_time), None

        harmful = []
        for flagged in analysis.categorized.harmful:
            harmful.append({
                'ingredient': flagged.ingredient.text,
                'id': flagged.ingredient.id,
                'reason': flagged.reason.value,
                'reason_text': FLAG_REASON_TEXT[flagged.reason],
                'substitutes': substitutes_for(flagged, profile),
            })

        return build_success_result(result, analysis, harmful, start_time), analysis

    def _harmful_rows(self, analysis: ScanAnalysis, harmful: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = []
        for item in harmful:
            fact = lookup_ingredient_fact(item['ingredient'])
            rows.append({
                'code': analysis.product.code,
                'ingredient': item['ingredient'],
                'ingredient_id': item['id'],
                'reason': item['reason'],
                'reason_title': item['reason_text']['title'],
                'substitutes': '; '.join(item['substitutes']),
                'fact': fact['fact'] if fact['found'] else '',
            })
        return rows

    def _insight_rows(self, analysis: ScanAnalysis) -> List[Dict[str, Any]]:
        rows = []
        for rank, insight in enumerate(analysis.insights, start=1):
            row = insight.to_dict()
            rows.append({'code': analysis.product.code, 'rank': rank, **row})
        return rows

    def _summary_frame(self, results: List[Dict[str, Any]]) -> pd.DataFrame:
        rows = []
        for r in results:
            row = {
                'index': r['index'],
                'code': r['code'],
                'status': r['status'],
                'error': r.get('error', ''),
                'processing_time_sec': r['processing_time_sec'],
            }
            if r['status'] == 'success':
                summary = dict(r['summary'])
                summary.pop('code', None)
                row.update(summary)
            rows.append(row)
        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def process_file(filename: str, profile: Profile) -> Dict[str, Any]:
    pipeline = ScanPipeline()
    return pipeline.process_file(filename, profile)


def process_all_files(profile: Profile) -> List[Dict[str, Any]]:
    pipeline = ScanPipeline()
    return [pipeline.process_file(f, profile) for f in pipeline.storage.list_input_files()]
