"""
Centralized Log Manager - Controls ALL logging and audit file creation

This is the ONLY place that decides:
- Where logs go
- Where audit files go
- Folder structure (logs/<batch>/run_N, audit/<batch>/run_N)
- File naming conventions
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict
import pandas as pd

from biteinsight.core.file_utils import write_csv, write_json, write_log, ensure_dir


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class LogManager:
    """Centralized logging controller for one batch run"""

    def __init__(self, input_filename: str, base_path: str = 'data'):
        self.input_filename = input_filename
        self.base_path = Path(base_path)

        self.file_id = self._extract_file_id(input_filename)

        self.run_num = self._get_next_run_number()
        self.run_id = f"run_{self.run_num}"

        self.logs_path = self.base_path / 'logs' / self.file_id / self.run_id
        self.audit_path = self.base_path / 'audit' / self.file_id / self.run_id

        ensure_dir(self.logs_path)
        ensure_dir(self.audit_path)

        self._log_run_start()

    def _extract_file_id(self, filename: str) -> str:
        """Batch id from filename ('scans_' prefix removed if present)"""
        name = Path(filename).stem
        if name.startswith('scans_'):
            name = name[len('scans_'):]
        return name

    def _get_next_run_number(self) -> int:
        """Determine next run number for this batch"""
        file_audit_path = self.base_path / 'audit' / self.file_id

        if not file_audit_path.exists():
            return 1

        run_numbers = [
            int(d.name.split('_')[1]) for d in file_audit_path.iterdir()
            if d.is_dir() and d.name.startswith('run_') and d.name.split('_')[1].isdigit()
        ]

        if not run_numbers:
            return 1
        return max(run_numbers) + 1

    def _log_run_start(self):
        message = f"[{_utc_timestamp()}] RUN START: {self.input_filename} | Run: {self.run_id}"
        write_log(self.logs_path / 'run.log', message)

    # ========== STEP LOGGING ==========

    def log_step(self, step_name: str, message: str):
        """Log a message for a specific step"""
        write_log(self.logs_path / f"{step_name}.log", f"[{_utc_timestamp()}] {message}")

    def log_step_start(self, step_name: str, step_title: str):
        self.log_step(step_name, "="*60)
        self.log_step(step_name, step_title)
        self.log_step(step_name, "="*60)

    def log_step_end(self, step_name: str):
        self.log_step(step_name, "="*60)
        self.log_step(step_name, "")

    # ========== AUDIT FILES ==========

    def save_audit_csv(self, step_name: str, df: pd.DataFrame, filename: str) -> Path:
        """Save audit CSV for a step"""
        csv_path = self.audit_path / step_name / filename
        write_csv(csv_path, df)

        relative_path = f"audit/{self.file_id}/{self.run_id}/{step_name}/{filename}"
        self.log_step(step_name, f"Saved: {relative_path} ({len(df):,} rows)")

        return csv_path

    def save_audit_json(self, step_name: str, data: Any, filename: str) -> Path:
        """Save audit JSON for a step"""
        json_path = self.audit_path / step_name / filename
        write_json(json_path, data)

        relative_path = f"audit/{self.file_id}/{self.run_id}/{step_name}/{filename}"
        self.log_step(step_name, f"Saved: {relative_path}")

        return json_path

    # ========== RUN SUMMARY ==========

    def save_run_manifest(self, summary_data: Dict[str, Any]) -> Path:
        """Save final run manifest"""
        manifest = dict(summary_data)
        manifest['generated_at'] = _utc_timestamp()
        manifest['filename'] = self.input_filename
        manifest['file_id'] = self.file_id
        manifest['run_id'] = self.run_id
        manifest['run_num'] = self.run_num

        manifest_path = self.audit_path / 'run_manifest.json'
        write_json(manifest_path, manifest)

        self.log_step('run', f"Run manifest saved: audit/{self.file_id}/{self.run_id}/run_manifest.json")
        return manifest_path

    # ========== INFO ==========

    def get_info(self) -> Dict[str, Any]:
        return {
            'filename': self.input_filename,
            'file_id': self.file_id,
            'run_id': self.run_id,
            'run_num': self.run_num,
            'logs_path': str(self.logs_path),
            'audit_path': str(self.audit_path)
        }
