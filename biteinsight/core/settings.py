"""
Settings - Environment-driven configuration

Values are read from the process environment, after loading a .env file from
the working directory if one exists. Read at call time so a changed
environment is picked up without re-importing.

Environment variables:
    STORAGE_MODE: 'local' or 'aws' (default: 'local')
    DATA_PATH: base directory for local mode (default: 'data')
    S3_INPUT_BUCKET: S3 bucket holding scan batches (required for aws mode)
    S3_OUTPUT_BUCKET: S3 bucket for analysis results (default: input bucket)
    AWS_REGION: AWS region (default: 'us-east-2')
    BITEINSIGHT_REFERENCE_DATA: alternate rule-table directory
"""

import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

PACKAGE_REFERENCE_DATA = Path(__file__).parent.parent / 'reference_data'


def storage_mode() -> str:
    return os.getenv('STORAGE_MODE', 'local').strip().lower()


def data_path() -> str:
    return os.getenv('DATA_PATH', 'data')


def s3_config() -> Dict[str, Optional[str]]:
    return {
        'input_bucket': os.getenv('S3_INPUT_BUCKET'),
        'output_bucket': os.getenv('S3_OUTPUT_BUCKET') or os.getenv('S3_INPUT_BUCKET'),
        'region': os.getenv('AWS_REGION', 'us-east-2'),
    }


def reference_data_dir() -> Path:
    """Directory holding the rule tables (JSON) and ingredient facts (CSV)"""
    override = os.getenv('BITEINSIGHT_REFERENCE_DATA')
    if override:
        return Path(override)
    return PACKAGE_REFERENCE_DATA
