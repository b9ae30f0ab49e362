"""Tests for Config class: settings persistence and retrieval."""

import json

import pytest

from clean_village.config import Config, _load_settings, _save_settings


@pytest.fixture
def settings_file(tmp_path):
    """Temporary settings file for isolation."""
    return tmp_path / "settings.json"


@pytest.fixture(autouse=True)
def isolate_config(settings_file, monkeypatch):
    """Redirect settings I/O to temp file so tests don't touch real config."""
    import clean_village.config as config_mod
    monkeypatch.setattr(config_mod, "_SETTINGS_FILE", settings_file)

    # Snapshot all mutable Config attributes before each test
    saved = {
        "TRAFFIC_FALLBACK_RATE": Config.TRAFFIC_FALLBACK_RATE,
        "CITRIC_FALLBACK_COST": Config.CITRIC_FALLBACK_COST,
        "CHEMICAL_DRUM_COST": Config.CHEMICAL_DRUM_COST,
        "CHEMICAL_DRUM_TO_BOTTLES": Config.CHEMICAL_DRUM_TO_BOTTLES,
        "DEFAULT_WORK_HOURS": Config.DEFAULT_WORK_HOURS,
        "AUDIT_LOG_CAP": Config.AUDIT_LOG_CAP,
        "EXPORTS_DIRECTORY": Config.EXPORTS_DIRECTORY,
    }
    yield
    # Restore all Config attributes after each test
    for attr, val in saved.items():
        setattr(Config, attr, val)


class TestConfigDefaults:
    """Verify default configuration values."""

    def test_fallback_rate_is_float(self):
        assert isinstance(Config.TRAFFIC_FALLBACK_RATE, float)

    def test_audit_cap_positive(self):
        assert Config.AUDIT_LOG_CAP >= 1

    def test_chemical_fallback_from_drum(self, monkeypatch):
        monkeypatch.setattr(Config, "CHEMICAL_DRUM_COST", 3000.0)
        monkeypatch.setattr(Config, "CHEMICAL_DRUM_TO_BOTTLES", 20.0)
        assert Config.chemical_fallback_cost() == 150.0

    def test_chemical_fallback_without_bottles(self, monkeypatch):
        monkeypatch.setattr(Config, "CHEMICAL_DRUM_TO_BOTTLES", 0)
        assert Config.chemical_fallback_cost() == Config.CHEMICAL_DRUM_COST

    def test_consumable_fallbacks_keys(self):
        assert set(Config.consumable_fallbacks()) == {"citric", "chemical"}


class TestSettingsPersistence:
    def test_load_missing_file(self):
        assert _load_settings() == {}

    def test_load_corrupt_file(self, settings_file):
        settings_file.write_text("{not json", encoding="utf-8")
        assert _load_settings() == {}

    def test_save_then_load(self):
        _save_settings({"audit_log_cap": 10})
        assert _load_settings() == {"audit_log_cap": 10}


class TestUpdates:
    def test_update_costing_defaults(self, settings_file):
        Config.update_costing_defaults(6.5, 55.0, 3200.0, 16.0)
        assert Config.TRAFFIC_FALLBACK_RATE == 6.5
        assert Config.chemical_fallback_cost() == 200.0
        saved = json.loads(settings_file.read_text(encoding="utf-8"))
        assert saved["traffic_fallback_rate"] == 6.5
        assert saved["chemical_drum_to_bottles"] == 16.0

    def test_update_default_work_hours(self, settings_file):
        Config.update_default_work_hours(3.0)
        assert Config.DEFAULT_WORK_HOURS == 3.0
        assert json.loads(settings_file.read_text())["default_work_hours"] == 3

    def test_update_audit_cap(self):
        Config.update_audit_cap(500)
        assert Config.AUDIT_LOG_CAP == 500
        assert _load_settings()["audit_log_cap"] == 500

    def test_update_audit_cap_rejects_zero(self):
        with pytest.raises(ValueError):
            Config.update_audit_cap(0)

    def test_update_exports_directory(self, tmp_path):
        Config.update_exports_directory(str(tmp_path / "exports"))
        assert Config.EXPORTS_DIRECTORY == str(tmp_path / "exports")

    def test_updates_preserve_other_keys(self):
        Config.update_audit_cap(100)
        Config.update_default_work_hours(1.5)
        saved = _load_settings()
        assert saved["audit_log_cap"] == 100
        assert saved["default_work_hours"] == 1.5

    def test_fallback_change_reaches_costing(self):
        from clean_village.costing.primitives import compute_unit_costs
        Config.update_costing_defaults(5.0, 77.0, 3000.0, 20.0)
        assert compute_unit_costs([]).citric == 77.0
