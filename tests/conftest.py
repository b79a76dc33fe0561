# tests/conftest.py
"""Shared fixtures for longvae tests."""

import tempfile
from pathlib import Path
from typing import Dict, Generator

import numpy as np
import pytest
import torch
import yaml

from longvae.models import MMDVAE


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_dict() -> Dict:
    """Provide a small but complete configuration dictionary."""
    return {
        "paths": {
            "data_root": "/tmp/data",
            "raw_dir": "/tmp/Raw",
            "save_dir": "/tmp/runs",
        },
        "data": {
            "image_size": [12, 12],
            "batch_size": 8,
            "num_workers": 0,
            "val_split": 0.25,
            "download": False,
        },
        "model": {
            "variant": "mmd_vae",
            "input_channels": 1,
            "z_dim": 4,
            "base_filters": 8,
            "num_stages": 2,
            "dense_units": 32,
            "activation": "leaky_relu",
            "norm_type": "none",
        },
        "train": {
            "seed": 42,
            "lr": 1.0e-3,
            "max_epochs": 1,
            "mmd_weight": 1.0,
            "mmd_warmup_epochs": 0,
            "prior_samples": 32,
            "recon_reduction": "mean",
        },
        "longitudinal": {
            "seed": 7,
            "n_subjects": 5,
            "n_visits": 5,
            "visit_interval": 0.5,
            "visit_jitter": 0.1,
            "rate_range": [0.05, 0.25],
            "noise_std": 0.02,
        },
        "forecast": {
            "n_forecast_visits": 1,
        },
        "logging": {
            "recon_every_n_epochs": 1,
            "num_recon_samples": 4,
        },
    }


@pytest.fixture
def sample_config_file(temp_dir: Path, sample_config_dict: Dict) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return config_path


@pytest.fixture
def tiny_model() -> MMDVAE:
    """Small MMDVAE for fast CPU tests."""
    torch.manual_seed(0)
    return MMDVAE(
        input_channels=1,
        image_size=(12, 12),
        z_dim=4,
        base_filters=8,
        num_stages=2,
        dense_units=32,
    )


@pytest.fixture
def synthetic_images() -> torch.Tensor:
    """Preprocessed-looking images [16, 1, 12, 12] in [0, 1]."""
    generator = torch.Generator().manual_seed(0)
    return torch.rand(16, 1, 12, 12, generator=generator)


@pytest.fixture
def raw_digits() -> np.ndarray:
    """Raw uint8 digit-like arrays [6, 28, 28]."""
    rng = np.random.default_rng(0)
    digits = np.zeros((6, 28, 28), dtype=np.uint8)
    digits[:, 8:20, 10:18] = rng.integers(128, 256, size=(6, 12, 8), dtype=np.uint8)
    return digits
