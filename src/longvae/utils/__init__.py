"""Utility functions module."""

from .seed import set_seed
from .logging import setup_logging
from .io import create_run_dir, save_split_csvs
from .config import ConfigError, load_config, validate_config, save_config, get_value, to_dict
from .checkpoint import (
    save_model_weights,
    load_model_weights,
    load_checkpoint,
    load_model_from_checkpoint,
)

__all__ = [
    "set_seed",
    "setup_logging",
    "create_run_dir",
    "save_split_csvs",
    "ConfigError",
    "load_config",
    "validate_config",
    "save_config",
    "get_value",
    "to_dict",
    "save_model_weights",
    "load_model_weights",
    "load_checkpoint",
    "load_model_from_checkpoint",
]
