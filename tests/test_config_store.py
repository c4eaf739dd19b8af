from __future__ import annotations

import json
from pathlib import Path

from config import JsonConfigStore, RecoverySettings


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key() == ""
    assert store.get_hotkey() == "Key.alt_l"

    store.set_api_key("abc")
    store.set_hotkey("Key.alt_r")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key() == "abc"
    assert reloaded.get_hotkey() == "Key.alt_r"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_key() == ""
    assert store.get_hotkey() == "Key.alt_l"
    assert store.get_recovery_settings() == RecoverySettings()


def test_recovery_settings_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)
    assert store.get_recovery_settings() == RecoverySettings()

    settings = RecoverySettings(max_attempts=5, timeout_s=12.5)
    store.set_api_key("abc")
    store.set_recovery_settings(settings)

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_recovery_settings() == settings
    assert reloaded.get_api_key() == "abc"


def test_invalid_recovery_values_keep_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "recovery": {
                    "max_attempts": "lots",
                    "timeout_s": -1,
                    "quiescence_delay_s": True,
                    "attempt_window_s": "60",
                }
            }
        ),
        encoding="utf-8",
    )

    settings = JsonConfigStore(path=path).get_recovery_settings()

    assert settings.max_attempts == 3
    assert settings.timeout_s == 30.0
    assert settings.quiescence_delay_s == 3.0
    assert settings.attempt_window_s == 60.0


def test_non_mapping_recovery_section_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"recovery": [1, 2, 3]}), encoding="utf-8")

    assert JsonConfigStore(path=path).get_recovery_settings() == RecoverySettings()
