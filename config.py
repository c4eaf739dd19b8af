"""Simple JSON-based config store."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path


@dataclass(frozen=True)
class RecoverySettings:
    max_attempts: int = 3
    attempt_window_s: float = 300.0
    timeout_s: float = 30.0
    quiescence_delay_s: float = 3.0
    ledger_capacity: int = 100
    health_check_interval_s: float = 30.0
    settle_delay_s: float = 0.5

    @classmethod
    def from_dict(cls, data: dict) -> RecoverySettings:
        """Build settings from untrusted data; bad values keep their default."""
        defaults = cls()
        values = {}
        for f in fields(cls):
            default = getattr(defaults, f.name)
            raw = data.get(f.name, default)
            try:
                value = type(default)(raw)
            except (TypeError, ValueError):
                value = default
            if isinstance(raw, bool) or value <= 0:
                value = default
            values[f.name] = value
        return cls(**values)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "dictate_recovery" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        data = self._read_all()
        data["api_key"] = key
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", "Key.alt_l"))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def get_recovery_settings(self) -> RecoverySettings:
        section = self._read_all().get("recovery", {})
        if not isinstance(section, dict):
            return RecoverySettings()
        return RecoverySettings.from_dict(section)

    def set_recovery_settings(self, settings: RecoverySettings) -> None:
        data = self._read_all()
        data["recovery"] = asdict(settings)
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
