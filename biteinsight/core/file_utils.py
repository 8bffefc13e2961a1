"""
Simple file I/O utilities - No business logic, just read/write
"""

import json
import pandas as pd
from pathlib import Path
from typing import Any, Union


def write_csv(filepath: Union[str, Path], df: pd.DataFrame):
    """Write DataFrame to CSV"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(filepath, index=False, encoding='utf-8')


def write_json(filepath: Union[str, Path], data: Any):
    """Write data as indented JSON"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def read_json(filepath: Union[str, Path]) -> Any:
    """Read a JSON file"""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_log(filepath: Union[str, Path], message: str):
    """Append message to log file"""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'a', encoding='utf-8') as f:
        f.write(message + '\n')


def ensure_dir(dirpath: Union[str, Path]):
    """Create directory if it doesn't exist"""
    Path(dirpath).mkdir(parents=True, exist_ok=True)
