"""Test suite for ConfigManager: loading formats, defaults, tolerances and merging."""

import json
import pytest

import yaml
import toml

from restorecalc.core.config import ConfigManager, ConfigValidationError


def test_load_json(tmp_path):
    """Ensure JSON files load correctly and default values are returned for missing keys."""
    cfg_file = tmp_path / "cfg.json"
    data = {"export_dir": "out", "reconciliation_tolerance": 0.1}
    cfg_file.write_text(json.dumps(data), encoding="utf-8")

    cfg = ConfigManager()
    cfg.load(str(cfg_file))

    assert cfg.get("export_dir") == "out"
    assert cfg.get_reconciliation_tolerance() == pytest.approx(0.1)
    # missing key uses default
    assert cfg.get("missing", "def") == "def"


def test_load_yaml(tmp_path):
    """Verify YAML files are parsed and values retrieved accurately."""
    cfg_file = tmp_path / "cfg.yaml"
    cfg_file.write_text(yaml.safe_dump({"sum_tolerance": 0.5}), encoding="utf-8")

    cfg = ConfigManager()
    cfg.load(str(cfg_file))

    assert cfg.get_sum_tolerance() == pytest.approx(0.5)


def test_load_toml(tmp_path):
    """Check TOML file loading and value retrieval functionality."""
    cfg_file = tmp_path / "cfg.toml"
    cfg_file.write_text(toml.dumps({"store_dir": "models", "time_horizon": 30}), encoding="utf-8")

    cfg = ConfigManager()
    cfg.load(str(cfg_file))

    assert cfg.get("store_dir") == "models"
    assert cfg.get("time_horizon") == 30


def test_load_unsupported_extension(tmp_path):
    """Confirm that loading unsupported file extensions raises ConfigValidationError."""
    cfg_file = tmp_path / "cfg.txt"
    cfg_file.write_text("whatever", encoding="utf-8")

    cfg = ConfigManager()
    with pytest.raises(ConfigValidationError):
        cfg.load(str(cfg_file))


def test_load_invalid_content(tmp_path):
    """Ensure invalid JSON content triggers a ConfigValidationError."""
    cfg_file = tmp_path / "bad.json"
    cfg_file.write_text("not a json!", encoding="utf-8")

    cfg = ConfigManager()
    with pytest.raises(ConfigValidationError):
        cfg.load(str(cfg_file))


def test_load_non_mapping(tmp_path):
    cfg_file = tmp_path / "list.json"
    cfg_file.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ConfigValidationError):
        ConfigManager().load(str(cfg_file))


@pytest.mark.parametrize("value", [-0.1, "0.05", True])
def test_rejects_bad_tolerance(tmp_path, value):
    cfg_file = tmp_path / "cfg.json"
    cfg_file.write_text(json.dumps({"reconciliation_tolerance": value}), encoding="utf-8")

    with pytest.raises(ConfigValidationError):
        ConfigManager().load(str(cfg_file))


def test_defaults():
    """The built-in defaults match the bundled resource file."""
    cfg = ConfigManager()
    bundled = ConfigManager.from_defaults()
    assert cfg.get_reconciliation_tolerance() == pytest.approx(0.05)
    assert cfg.get_sum_tolerance() == pytest.approx(0.01)
    assert bundled.config == cfg.config


def test_merge_configs():
    """Values of the merged manager override this one."""
    cfg1 = ConfigManager()
    cfg1.config = {"a": 1, "b": 1}

    cfg2 = ConfigManager()
    cfg2.config = {"b": 2}

    cfg1.merge(cfg2)

    assert cfg1.get("a") == 1
    assert cfg1.get("b") == 2


def test_merge_wrong_type():
    """Assert merging with a non-ConfigManager object raises a TypeError."""
    cfg = ConfigManager()
    with pytest.raises(TypeError):
        cfg.merge("not a config manager")
