"""Application configuration: loads .env, then overrides from settings.json."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Find the project root (where .env lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Runtime settings file for in-app configuration
_SETTINGS_FILE = _PROJECT_ROOT / "data" / "settings.json"


def _load_settings() -> dict:
    """Load saved runtime settings from JSON file."""
    if _SETTINGS_FILE.exists():
        try:
            return json.loads(_SETTINGS_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _save_settings(settings: dict):
    """Persist runtime settings to JSON file."""
    _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    _SETTINGS_FILE.write_text(
        json.dumps(settings, indent=2), encoding="utf-8"
    )


# Load saved settings once at import time
_runtime = _load_settings()


class Config:
    """Central configuration: .env defaults, settings.json overrides."""

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    DATABASE_PATH: Path = Path(
        os.getenv("DATABASE_PATH",
                  str(_PROJECT_ROOT / "data" / "clean_village.db"))
    )
    BACKUP_PATH: Path = Path(
        os.getenv("DATABASE_BACKUP_PATH", str(_PROJECT_ROOT / "data" / "backups"))
    )
    EXPORTS_DIRECTORY: str = _runtime.get(
        "exports_directory",
        os.getenv("EXPORTS_DIRECTORY", str(_PROJECT_ROOT / "data" / "exports")),
    )

    # Costing fallbacks (settings.json overrides .env)
    TRAFFIC_FALLBACK_RATE: float = float(_runtime.get(
        "traffic_fallback_rate",
        os.getenv("TRAFFIC_FALLBACK_RATE", "5.0"),
    ))
    CITRIC_FALLBACK_COST: float = float(_runtime.get(
        "citric_fallback_cost",
        os.getenv("CITRIC_FALLBACK_COST", "50.0"),
    ))
    CHEMICAL_DRUM_COST: float = float(_runtime.get(
        "chemical_drum_cost",
        os.getenv("CHEMICAL_DRUM_COST", "3000.0"),
    ))
    CHEMICAL_DRUM_TO_BOTTLES: float = float(_runtime.get(
        "chemical_drum_to_bottles",
        os.getenv("CHEMICAL_DRUM_TO_BOTTLES", "20"),
    ))
    DEFAULT_WORK_HOURS: float = float(_runtime.get(
        "default_work_hours",
        os.getenv("DEFAULT_WORK_HOURS", "2.0"),
    ))

    # Business targets (seed the persisted AppSettings on first run)
    MONTHLY_TARGET: float = float(_runtime.get(
        "monthly_target",
        os.getenv("MONTHLY_TARGET", "150000"),
    ))
    MONTHLY_SALARY: float = float(_runtime.get(
        "monthly_salary",
        os.getenv("MONTHLY_SALARY", "60000"),
    ))

    # Audit log
    AUDIT_LOG_CAP: int = int(_runtime.get(
        "audit_log_cap",
        os.getenv("AUDIT_LOG_CAP", "2000"),
    ))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def chemical_fallback_cost(cls) -> float:
        """Per-bottle chemical cost derived from the drum price."""
        if cls.CHEMICAL_DRUM_TO_BOTTLES <= 0:
            return cls.CHEMICAL_DRUM_COST
        return cls.CHEMICAL_DRUM_COST / cls.CHEMICAL_DRUM_TO_BOTTLES

    @classmethod
    def consumable_fallbacks(cls) -> dict[str, float]:
        """Fallback unit cost per consumable type, used with no stock logs."""
        from clean_village.utils.constants import (
            CONSUMABLE_CHEMICAL,
            CONSUMABLE_CITRIC,
        )
        return {
            CONSUMABLE_CITRIC: cls.CITRIC_FALLBACK_COST,
            CONSUMABLE_CHEMICAL: cls.chemical_fallback_cost(),
        }

    @classmethod
    def update_costing_defaults(cls, traffic_rate: float, citric_cost: float,
                                drum_cost: float, drum_to_bottles: float):
        """Update costing fallback constants and persist."""
        cls.TRAFFIC_FALLBACK_RATE = traffic_rate
        cls.CITRIC_FALLBACK_COST = citric_cost
        cls.CHEMICAL_DRUM_COST = drum_cost
        cls.CHEMICAL_DRUM_TO_BOTTLES = drum_to_bottles

        settings = _load_settings()
        settings["traffic_fallback_rate"] = traffic_rate
        settings["citric_fallback_cost"] = citric_cost
        settings["chemical_drum_cost"] = drum_cost
        settings["chemical_drum_to_bottles"] = drum_to_bottles
        _save_settings(settings)

    @classmethod
    def update_default_work_hours(cls, hours: float):
        """Update the assumed duration for jobs logged without hours."""
        cls.DEFAULT_WORK_HOURS = hours
        settings = _load_settings()
        settings["default_work_hours"] = hours
        _save_settings(settings)

    @classmethod
    def update_audit_cap(cls, cap: int):
        """Update the audit log size ceiling and persist."""
        if cap < 1:
            raise ValueError("Audit log cap must be at least 1")
        cls.AUDIT_LOG_CAP = cap
        settings = _load_settings()
        settings["audit_log_cap"] = cap
        _save_settings(settings)

    @classmethod
    def update_exports_directory(cls, directory: str):
        """Update where report exports are written and persist."""
        cls.EXPORTS_DIRECTORY = directory
        settings = _load_settings()
        settings["exports_directory"] = directory
        _save_settings(settings)
