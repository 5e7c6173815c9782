"""core.config
---------------

Configuration loader/manager for restorecalc. Provides a central API for
loading settings from YAML/TOML/JSON and retrieving them via
:py:meth:`ConfigManager.get`.
"""

# Imports for config parsing
import os
import json
from pathlib import Path

import yaml
import toml


# Exception for config validation errors
class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""


DEFAULT_CONFIG_PATH = (
    Path(__file__).resolve().parent.parent / "resources" / "restorecalc.toml"
)


class ConfigManager:
    """
    Loads and manages configuration from file or defaults.
    Provides the tolerances used by the validation engine and the locations
    used by the persistence and export collaborators.
    """

    # Allowed relative deviation between declared and computed unfavorable cost
    RECONCILIATION_TOLERANCE: float = 0.05
    # Absolute tolerance for "sums to 100" and "total equals parts" checks
    SUM_TOLERANCE: float = 0.01
    DEFAULT_TIME_HORIZON: int = 20
    STORAGE_KEY: str = "restoration-calculator-models"
    STORE_DIR: str = ".restorecalc"
    EXPORT_DIR: str = "exports"

    def __init__(self, config_path=None):
        self.config = {
            "reconciliation_tolerance": self.RECONCILIATION_TOLERANCE,
            "sum_tolerance": self.SUM_TOLERANCE,
            "time_horizon": self.DEFAULT_TIME_HORIZON,
            "storage_key": self.STORAGE_KEY,
            "store_dir": self.STORE_DIR,
            "export_dir": self.EXPORT_DIR,
        }
        if config_path:
            self.load(config_path)

    @classmethod
    def from_defaults(cls) -> "ConfigManager":
        """Return a manager initialised from the bundled ``restorecalc.toml``."""
        if DEFAULT_CONFIG_PATH.exists():
            return cls(str(DEFAULT_CONFIG_PATH))
        return cls()  # pragma: no cover - resources always shipped

    def load(self, path: str) -> None:
        """
        Load configuration from a file (YAML, TOML, or JSON).
        Overwrites existing keys in self.config.
        """
        ext = os.path.splitext(path)[1].lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if ext in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif ext == ".toml":
                    data = toml.load(f)
                elif ext == ".json":
                    data = json.load(f)
                else:
                    raise ConfigValidationError(f"Unsupported config format: {ext}")
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file {path} did not produce a dict")
        self._check_tolerances(data, path)
        self.config.update(data)

    @staticmethod
    def _check_tolerances(data: dict, path: str) -> None:
        for key in ("reconciliation_tolerance", "sum_tolerance"):
            if key not in data:
                continue
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigValidationError(f"{key} in {path} must be a number")
            if value < 0:
                raise ConfigValidationError(f"{key} in {path} must not be negative")

    def get(self, key, default=None):
        """
        Retrieve a configuration value by key, or return `default` if not present.

        Args:
            key (str): The configuration parameter to look up.
            default:  The value to return if `key` is not found.
        """
        if key in self.config:
            return self.config.get(key, default)
        return default

    def merge(self, other: "ConfigManager") -> None:
        """
        Merge another ConfigManager into this one.
        Values in other.config override this.config.
        """
        if not isinstance(other, ConfigManager):
            raise TypeError("Can only merge ConfigManager instances")
        self.config.update(other.config)

    def get_reconciliation_tolerance(self) -> float:
        """Return the relative tolerance for the unfavorable cost reconciliation."""
        return float(
            self.get("reconciliation_tolerance", self.RECONCILIATION_TOLERANCE)
        )

    def get_sum_tolerance(self) -> float:
        """Return the absolute tolerance for sum checks."""
        return float(self.get("sum_tolerance", self.SUM_TOLERANCE))
