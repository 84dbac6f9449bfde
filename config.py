"""Simple JSON-based config store."""

from __future__ import annotations

import json
import os
from pathlib import Path

from dotenv import load_dotenv

from contacts import DEFAULT_MAX_DISTANCE
from interpreter import DEFAULT_DIAL_DIGITS_THRESHOLD

CONFIG_DIR = Path.home() / ".config" / "hey_adel"
ENV_FILE = CONFIG_DIR / ".env"


def load_env_file(path: Path | None = None) -> bool:
    """Export variables such as PICOVOICE_ACCESS_KEY from a .env file.

    Variables already set in the process environment win.
    """
    return load_dotenv(dotenv_path=path or ENV_FILE, override=False)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or CONFIG_DIR / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_access_key(self) -> str:
        data = self._read_all()
        return str(data.get("access_key") or os.getenv("PICOVOICE_ACCESS_KEY", ""))

    def set_access_key(self, key: str) -> None:
        self._set("access_key", key)

    def get_keyword_path(self) -> str:
        data = self._read_all()
        return str(data.get("keyword_path", "assets/porcupine/hey-adel.ppn"))

    def get_sensitivity(self) -> float:
        value = self._get_float("sensitivity", 0.7)
        return min(max(value, 0.0), 1.0)

    def get_model_path(self) -> str:
        data = self._read_all()
        return str(data.get("model_path", "assets/vosk/model"))

    def get_contacts_path(self) -> Path:
        data = self._read_all()
        return Path(data.get("contacts_path") or self._path.parent / "contacts.json").expanduser()

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", "Key.alt_l"))

    def set_hotkey(self, hotkey: str) -> None:
        self._set("hotkey", hotkey)

    def get_match_max_distance(self) -> int:
        return int(self._get_float("match_max_distance", DEFAULT_MAX_DISTANCE))

    def get_dial_digits_threshold(self) -> int:
        return int(self._get_float("dial_digits_threshold", DEFAULT_DIAL_DIGITS_THRESHOLD))

    def get_backoff_s(self) -> float:
        return self._get_float("backoff_s", 1.0)

    def get_settle_s(self) -> float:
        return self._get_float("settle_s", 2.0)

    def get_listen_timeout_s(self) -> float:
        return self._get_float("listen_timeout_s", 8.0)

    def _get_float(self, key: str, default: float) -> float:
        value = self._read_all().get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            return float(default)

    def _set(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
