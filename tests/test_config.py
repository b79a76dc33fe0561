# tests/test_config.py
"""Tests for configuration utilities."""

from pathlib import Path
from typing import Dict

import pytest
import yaml
from omegaconf import DictConfig, OmegaConf

from longvae.utils.config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    get_value,
    load_config,
    save_config,
    to_dict,
    validate_config,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, sample_config_file: Path):
        cfg = load_config(sample_config_file)

        assert isinstance(cfg, DictConfig)
        assert cfg.paths.raw_dir == "/tmp/Raw"
        assert cfg.model.z_dim == 4
        assert list(cfg.data.image_size) == [12, 12]

    def test_load_default_config(self):
        """The packaged default config loads and validates."""
        assert DEFAULT_CONFIG_PATH.exists()
        cfg = load_config()
        validate_config(cfg)
        assert cfg.model.z_dim == 16
        assert list(cfg.data.image_size) == [12, 12]

    def test_load_config_with_overrides(self, sample_config_file: Path):
        cfg = load_config(
            sample_config_file,
            overrides=["model.z_dim=8", "train.max_epochs=3"],
        )
        assert cfg.model.z_dim == 8
        assert cfg.train.max_epochs == 3

    def test_load_config_file_not_found(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError, match="not found"):
            load_config(temp_dir / "nonexistent.yaml")

    def test_load_config_invalid_yaml(self, temp_dir: Path):
        bad_config = temp_dir / "bad.yaml"
        bad_config.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError, match="Failed to load"):
            load_config(bad_config)

    def test_load_config_resolves_interpolations(self, temp_dir: Path, sample_config_dict: Dict):
        sample_config_dict["paths"]["raw_dir"] = "${paths.save_dir}/Raw"
        config_path = temp_dir / "interp.yaml"
        with open(config_path, "w") as f:
            yaml.dump(sample_config_dict, f)

        cfg = load_config(config_path, resolve=True)
        assert cfg.paths.raw_dir == "/tmp/runs/Raw"


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_validate_valid_config(self, sample_config_file: Path):
        cfg = load_config(sample_config_file)
        validate_config(cfg)

    def test_validate_missing_field(self, sample_config_dict: Dict):
        del sample_config_dict["model"]["z_dim"]
        cfg = OmegaConf.create(sample_config_dict)

        with pytest.raises(ConfigError, match="Missing required field: model.z_dim"):
            validate_config(cfg)

    def test_validate_wrong_type(self, sample_config_dict: Dict):
        sample_config_dict["data"]["batch_size"] = "eight"
        cfg = OmegaConf.create(sample_config_dict)

        with pytest.raises(ConfigError, match="Invalid type for data.batch_size"):
            validate_config(cfg)

    def test_validate_int_accepted_as_float(self, sample_config_dict: Dict):
        sample_config_dict["train"]["mmd_weight"] = 2
        validate_config(OmegaConf.create(sample_config_dict))

    def test_validate_list_field(self, sample_config_dict: Dict):
        sample_config_dict["data"]["image_size"] = 12
        cfg = OmegaConf.create(sample_config_dict)

        with pytest.raises(ConfigError, match="expected list"):
            validate_config(cfg)

    def test_validate_custom_schema(self):
        cfg = OmegaConf.create({"custom": {"field": "value"}})
        validate_config(cfg, schema={"custom.field": str})

    def test_validate_reports_all_errors(self, sample_config_dict: Dict):
        del sample_config_dict["train"]["lr"]
        del sample_config_dict["longitudinal"]["n_visits"]
        cfg = OmegaConf.create(sample_config_dict)

        with pytest.raises(ConfigError) as exc_info:
            validate_config(cfg)
        assert "train.lr" in str(exc_info.value)
        assert "longitudinal.n_visits" in str(exc_info.value)


class TestConfigHelpers:
    """Tests for to_dict, save_config and get_value."""

    def test_to_dict(self, sample_config_file: Path):
        d = to_dict(load_config(sample_config_file))
        assert isinstance(d, dict)
        assert isinstance(d["paths"], dict)
        assert d["model"]["z_dim"] == 4

    def test_save_config_roundtrip(self, sample_config_file: Path, temp_dir: Path):
        cfg = load_config(sample_config_file)
        path = save_config(cfg, temp_dir / "nested" / "saved.yaml")

        assert path.exists()
        assert load_config(path).model.z_dim == cfg.model.z_dim

    def test_get_value(self, sample_config_file: Path):
        cfg = load_config(sample_config_file)
        assert get_value(cfg, "train.lr") == pytest.approx(1e-3)
        assert get_value(cfg, "train.missing", default=5) == 5

    def test_get_value_keeps_false(self, sample_config_dict: Dict):
        """Explicit false flags (e.g. train.fit=false) are not replaced by the default."""
        cfg = load_config(overrides=["train.fit=false", "data.download=false"])
        assert get_value(cfg, "train.fit", True) is False
        assert get_value(cfg, "data.download", True) is False
        assert get_value(cfg, "data.max_train_samples", None) is None
