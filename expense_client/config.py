from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

import yaml

from expense_client.core.models import CATEGORIES

DEFAULT_CONFIG: Dict[str, object] = {
    "api_url": "http://localhost:5000",
    "session_file": "~/.expense_client/session.json",
    "request_timeout": 10,
    "debounce_seconds": 0.5,
    "output_dir": "./data",
    "export_dir": ".",
    "output_modules": {
        "csv": "expense_client.outputs.csv_output.CSVOutput",
        "excel": "expense_client.outputs.excel_output.ExcelOutput",
    },
    "export_loaders": {
        "csv": "expense_client.loaders.export_csv.ExportCSVLoader",
    },
    "categories": list(CATEGORIES),
}

CONFIG_PATH = Path("~/.expense_client/config.yaml").expanduser()

ENV_OVERRIDES = {
    "EXPENSE_CLIENT_API_URL": "api_url",
    "EXPENSE_CLIENT_SESSION_FILE": "session_file",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def _apply_env(config: Dict[str, object]) -> Dict[str, object]:
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config


def load_config(path: Optional[Path] = None) -> Dict[str, object]:
    target = Path(path) if path else CONFIG_PATH
    data: Dict[str, object] = {}
    if target.exists():
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    return _apply_env(_merge_defaults(data, DEFAULT_CONFIG))


def save_config(config: Dict[str, object], path: Optional[Path] = None) -> None:
    target = Path(path) if path else CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False)


def set_value(key: str, value: object, path: Optional[Path] = None) -> Dict[str, object]:
    target = Path(path) if path else CONFIG_PATH
    config: Dict[str, object] = {}
    if target.exists():
        with target.open("r", encoding="utf-8") as fp:
            config = yaml.safe_load(fp) or {}
    config[key] = value
    save_config(config, target)
    return load_config(target)
