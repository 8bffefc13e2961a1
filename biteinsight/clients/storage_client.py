"""
Storage Client - Unified interface for scan batch files

Supports two modes:
- LOCAL: Uses local filesystem (data/input, data/output)
- AWS: Uses S3 buckets (input/ and output/ prefixes)
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from biteinsight.core import settings


class StorageClient:
    """
    Abstraction layer for file storage operations

    Usage:
        # Local mode (development/testing)
        storage = StorageClient(mode='local')

        # AWS mode (production)
        storage = StorageClient(
            mode='aws',
            s3_config={
                'input_bucket': 'bucket-name',
                'output_bucket': 'bucket-name',
                'region': 'us-east-2'
            }
        )
    """

    def __init__(
        self,
        mode: str = 'local',
        base_path: str = 'data',
        s3_config: Optional[Dict[str, str]] = None
    ):
        """
        Initialize storage client

        Args:
            mode: 'local' or 'aws'
            base_path: Base directory for local mode (default: 'data')
            s3_config: Configuration for AWS mode with keys:
                - input_bucket: S3 bucket for scan batches
                - output_bucket: S3 bucket for results (default: input_bucket)
                - region: AWS region (default: us-east-2)

        Raises:
            ValueError: If mode is invalid or required config missing
        """
        self.mode = mode.lower()

        if self.mode not in ['local', 'aws']:
            raise ValueError(f"Invalid mode '{mode}'. Must be 'local' or 'aws'")

        if self.mode == 'local':
            self._init_local(base_path)
        else:
            self._init_aws(s3_config)

    def _init_local(self, base_path: str):
        self.base_path = Path(base_path)
        self.input_dir = self.base_path / 'input'
        self.output_dir = self.base_path / 'output'

        self.input_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _init_aws(self, s3_config: Optional[Dict[str, str]]):
        if not s3_config or not s3_config.get('input_bucket'):
            raise ValueError("s3_config with an input_bucket is required for AWS mode")

        self.input_bucket = s3_config['input_bucket']
        self.output_bucket = s3_config.get('output_bucket') or self.input_bucket
        self.region = s3_config.get('region') or 'us-east-2'

        try:
            self.s3_client = boto3.client('s3', region_name=self.region)
        except NoCredentialsError:
            raise ValueError(
                "AWS credentials not found. "
                "Configure with: aws configure"
            )

    # ========================================================================
    # LIST FILES
    # ========================================================================

    def list_input_files(self, pattern: str = '*.json') -> List[str]:
        """
        List files in input location

        Args:
            pattern: File pattern to match (default: '*.json')

        Returns:
            Sorted list of filenames (not full paths)
        """
        if self.mode == 'local':
            files = [f.name for f in self.input_dir.glob(pattern) if f.is_file()]
        else:
            files = self._list_s3_files(self.input_bucket, 'input/', pattern)
        return sorted(files)

    def _list_s3_files(self, bucket: str, prefix: str, pattern: str) -> List[str]:
        try:
            response = self.s3_client.list_objects_v2(Bucket=bucket, Prefix=prefix)
        except ClientError as e:
            raise IOError(f"Failed to list S3 files: {e}")

        suffix = pattern.replace('*', '')
        files = []
        for obj in response.get('Contents', []):
            filename = obj['Key'].split('/')[-1]
            # Skip directory placeholders
            if filename and filename.endswith(suffix):
                files.append(filename)
        return files

    # ========================================================================
    # READ FILES
    # ========================================================================

    def read_json(self, filename: str) -> Any:
        """
        Read a JSON file from input location

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file is not valid JSON
        """
        if self.mode == 'local':
            filepath = self.input_dir / filename
            if not filepath.exists():
                raise FileNotFoundError(f"File not found: {filepath}")
            text = filepath.read_text(encoding='utf-8')
        else:
            text = self._read_s3_text(filename)

        try:
            return json.loads(text)
        except ValueError as e:
            raise ValueError(f"Failed to parse {filename} as JSON: {e}")

    def _read_s3_text(self, filename: str) -> str:
        s3_key = f'input/{filename}'
        try:
            obj = self.s3_client.get_object(Bucket=self.input_bucket, Key=s3_key)
        except ClientError as e:
            if e.response['Error']['Code'] == 'NoSuchKey':
                raise FileNotFoundError(f"File not found in S3: {s3_key}")
            raise IOError(f"Failed to read from S3: {e}")
        return obj['Body'].read().decode('utf-8')

    # ========================================================================
    # WRITE FILES
    # ========================================================================

    def write_json(self, data: Any, filename: str, subfolder: str = '') -> str:
        """
        Write data as JSON to output location

        Returns:
            Full path or S3 URI where file was written
        """
        body = json.dumps(data, indent=2, ensure_ascii=False)

        if self.mode == 'local':
            output_path = self.output_dir / subfolder / filename
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(body, encoding='utf-8')
            return str(output_path)

        s3_key = f'output/{subfolder}{filename}'
        try:
            self.s3_client.put_object(
                Bucket=self.output_bucket,
                Key=s3_key,
                Body=body.encode('utf-8'),
                ContentType='application/json'
            )
        except ClientError as e:
            raise IOError(f"Failed to write to S3: {e}")
        return f's3://{self.output_bucket}/{s3_key}'

    # ========================================================================
    # UTILITY METHODS
    # ========================================================================

    def get_info(self) -> Dict[str, str]:
        if self.mode == 'local':
            return {
                'mode': 'local',
                'base_path': str(self.base_path),
                'input_dir': str(self.input_dir),
                'output_dir': str(self.output_dir)
            }
        return {
            'mode': 'aws',
            'region': self.region,
            'input_bucket': self.input_bucket,
            'output_bucket': self.output_bucket
        }


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_storage_client_from_env() -> StorageClient:
    """
    Create storage client from environment settings

    Environment variables:
        STORAGE_MODE: 'local' or 'aws' (default: 'local')
        DATA_PATH: Base directory for local mode (default: 'data')
        S3_INPUT_BUCKET: required for AWS mode
        S3_OUTPUT_BUCKET: optional, defaults to S3_INPUT_BUCKET
        AWS_REGION: default 'us-east-2'
    """
    mode = settings.storage_mode()

    if mode == 'aws':
        s3_config = settings.s3_config()
        if not s3_config['input_bucket']:
            raise ValueError("S3_INPUT_BUCKET environment variable required for AWS mode")
        return StorageClient(mode='aws', s3_config=s3_config)

    return StorageClient(mode=mode, base_path=settings.data_path())
