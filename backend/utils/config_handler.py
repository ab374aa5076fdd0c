"""
Module: backend/utils/config_handler.py
Unified comment style: module docstring + minimal inline notes.
"""
import json, os
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_DATA: Dict[str, Any] = {
    "mode": os.getenv("APP_MODE", "normal"),
    "trust_weight_min": 1,
    "trust_weight_max": 10,
    "trust_weight_default": 3,
    "allow_self_registration_roles": ["student"],
}


def config_dir() -> Path:
    configured = os.getenv("CONFIG_DIR") or os.getenv("DATA_DIR")
    if configured:
        data_dir = Path(configured)
    else:
        data_dir = Path(__file__).parent.parent / "data"
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        import tempfile
        data_dir = Path(tempfile.gettempdir()) / "courseforum_data"
        data_dir.mkdir(exist_ok=True)
        logger.warning("Using temporary directory for config: %s", data_dir)
    return data_dir


def config_path() -> Path:
    return config_dir() / "config.json"


def load_config() -> Dict[str, Any]:
    path = config_path()
    if not path.exists():
        data = DEFAULT_DATA.copy()
        save_config(data)
        return data
    try:
        data: Dict[str, Any] = json.loads(path.read_text("utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("config.json unreadable, falling back to defaults: %s", e)
        data = DEFAULT_DATA.copy()
    changed = False
    for k, v in DEFAULT_DATA.items():
        if k not in data:
            data[k] = v
            changed = True
    if changed:
        save_config(data)
    return data


def save_config(data: Dict[str, Any]) -> None:
    config_path().write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def trust_weight_range() -> tuple[int, int, int]:
    """回傳 (最小, 最大, 預設) 信任權重"""
    data = load_config()
    lo = int(data.get("trust_weight_min", 1))
    hi = int(data.get("trust_weight_max", 10))
    default = int(data.get("trust_weight_default", 3))
    return lo, hi, default


def update_config(**changes: Any) -> Dict[str, Any]:
    data = load_config()
    for k, v in changes.items():
        if k not in DEFAULT_DATA:
            raise KeyError(k)
        data[k] = v
    save_config(data)
    return data
