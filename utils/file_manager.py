import json
import os
import tempfile
import threading

_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
_FILE_LOCK = threading.Lock()

SALES_FILE = "sales.json"
SESSION_FILE = "session.json"
CONFIG_FILE = "config.json"

DEFAULTS = {
    SALES_FILE: [],
    SESSION_FILE: None,
    CONFIG_FILE: {
        "app_slug": "boom_art",
        "assistant": {
            "model": "gemini-2.5-pro",
            "timeout_seconds": 30,
            "max_records": 500,
            "thinking_budget": 2048
        }
    }
}

def data_path(filename: str) -> str:
    os.makedirs(_DATA_DIR, exist_ok=True)
    return os.path.join(_DATA_DIR, filename)

def _atomic_write(path: str, data_obj):
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(path))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(data_obj, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)

def ensure_defaults():
    os.makedirs(_DATA_DIR, exist_ok=True)
    for fname, default in DEFAULTS.items():
        path = data_path(fname)
        if not os.path.exists(path):
            with _FILE_LOCK:
                _atomic_write(path, default)

def read_json(filename: str):
    path = data_path(filename)
    with _FILE_LOCK:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

def write_json(filename: str, obj):
    path = data_path(filename)
    with _FILE_LOCK:
        _atomic_write(path, obj)

def get_config() -> dict:
    """Return config.json merged over the defaults so missing keys never break callers."""
    cfg = dict(DEFAULTS[CONFIG_FILE])
    try:
        stored = read_json(CONFIG_FILE)
    except (OSError, ValueError):
        stored = {}
    if isinstance(stored, dict):
        for key, value in stored.items():
            if isinstance(value, dict) and isinstance(cfg.get(key), dict):
                cfg[key] = {**cfg[key], **value}
            else:
                cfg[key] = value
    return cfg
