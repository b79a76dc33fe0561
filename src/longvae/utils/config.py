"""OmegaConf configuration loading and validation utilities.

This module provides:
- Config loading from YAML with optional CLI overrides
- Schema validation for required fields
- Access to the packaged default configuration
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from omegaconf import OmegaConf, DictConfig, MissingMandatoryValue

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "mnist_mmd_vae.yaml"


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[List[str]] = None,
    resolve: bool = True,
) -> DictConfig:
    """Load configuration from YAML file with optional CLI overrides.

    Args:
        config_path: Path to YAML configuration file. If None, the packaged
            default (``config/mnist_mmd_vae.yaml``) is used.
        overrides: List of CLI overrides in "key=value" format.
            Example: ["train.seed=123", "data.batch_size=64"]
        resolve: If True, resolve interpolations (${...}).

    Returns:
        OmegaConf DictConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigError: If config loading fails.

    Example:
        >>> cfg = load_config(overrides=["model.z_dim=8"])
        >>> print(cfg.model.z_dim)
        8
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        cfg = OmegaConf.load(config_path)
        logger.info(f"Loaded config from: {config_path}")

        if overrides:
            override_cfg = OmegaConf.from_dotlist(overrides)
            cfg = OmegaConf.merge(cfg, override_cfg)
            logger.info(f"Applied {len(overrides)} config overrides")

        if resolve:
            OmegaConf.resolve(cfg)

        return cfg

    except Exception as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}") from e


def validate_config(
    cfg: DictConfig,
    schema: Optional[Dict[str, type]] = None,
) -> None:
    """Validate configuration against schema.

    Args:
        cfg: Configuration to validate.
        schema: Optional schema dict mapping dotted paths to expected types.
            If None, uses the default MMD-VAE schema.

    Raises:
        ConfigError: If validation fails with detailed error messages.

    Example:
        >>> validate_config(cfg)  # Uses default schema
        >>> validate_config(cfg, {"custom.field": str})  # Custom schema
    """
    if schema is None:
        schema = _get_default_schema()

    errors = []
    for path, expected_type in schema.items():
        try:
            value = OmegaConf.select(cfg, path)
            if value is None:
                errors.append(f"Missing required field: {path}")
            elif expected_type is not None:
                if expected_type == list:
                    # OmegaConf returns ListConfig, check if it's list-like
                    if not hasattr(value, "__iter__") or isinstance(value, (str, dict)):
                        errors.append(
                            f"Invalid type for {path}: expected list, "
                            f"got {type(value).__name__}"
                        )
                elif expected_type == float and isinstance(value, int) and not isinstance(value, bool):
                    # YAML writes 1.0 as 1 often enough; ints are valid floats
                    continue
                elif not isinstance(value, expected_type):
                    errors.append(
                        f"Invalid type for {path}: expected {expected_type.__name__}, "
                        f"got {type(value).__name__}"
                    )
        except MissingMandatoryValue:
            errors.append(f"Missing required field: {path}")
        except Exception as e:
            errors.append(f"Error validating {path}: {e}")

    if errors:
        error_msg = "Configuration validation failed:\n  " + "\n  ".join(errors)
        raise ConfigError(error_msg)

    logger.info("Configuration validation passed")


def _get_default_schema() -> Dict[str, type]:
    """Get default schema for the MMD-VAE config.

    Returns:
        Dictionary mapping dotted paths to expected types.
    """
    return {
        # Paths
        "paths.data_root": str,
        "paths.raw_dir": str,
        "paths.save_dir": str,
        # Data settings
        "data.image_size": list,
        "data.batch_size": int,
        "data.val_split": float,
        # Model settings
        "model.input_channels": int,
        "model.z_dim": int,
        "model.base_filters": int,
        # Train settings
        "train.seed": int,
        "train.lr": float,
        "train.max_epochs": int,
        "train.mmd_weight": float,
        # Longitudinal settings
        "longitudinal.n_subjects": int,
        "longitudinal.n_visits": int,
        "forecast.n_forecast_visits": int,
    }


def to_dict(cfg: DictConfig, resolve: bool = True) -> Dict[str, Any]:
    """Convert OmegaConf DictConfig to plain Python dict.

    Args:
        cfg: OmegaConf DictConfig to convert.
        resolve: If True, resolve interpolations before converting.

    Returns:
        Plain Python dictionary.
    """
    return OmegaConf.to_container(cfg, resolve=resolve)


def save_config(
    cfg: DictConfig,
    save_path: Union[str, Path],
    resolve: bool = True,
) -> Path:
    """Save configuration to YAML file.

    Args:
        cfg: Configuration to save.
        save_path: Path to save YAML file.
        resolve: If True, resolve interpolations before saving.

    Returns:
        Path to the saved file.

    Example:
        >>> save_config(cfg, "runs/20240101_mmd_vae/config_resolved.yaml")
    """
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)

    with open(save_path, "w") as f:
        OmegaConf.save(cfg, f, resolve=resolve)

    logger.info(f"Saved config to: {save_path}")
    return save_path


def get_value(
    cfg: DictConfig,
    path: str,
    default: Any = None,
) -> Any:
    """Safely get a nested config value with default.

    Args:
        cfg: Configuration object.
        path: Dotted path to value (e.g., "train.lr").
        default: Default value if path doesn't exist.

    Returns:
        Config value or default.

    Example:
        >>> lr = get_value(cfg, "train.lr", default=1e-3)
    """
    value = OmegaConf.select(cfg, path, default=None)
    return value if value is not None else default
