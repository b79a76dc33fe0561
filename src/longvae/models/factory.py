"""Model factory for the MMD-VAE.

Separates model instantiation from training logic so that scripts, the
Lightning module and the forecasting pipeline build identical networks
from the same configuration.
"""

from omegaconf import DictConfig

from .mmd_vae import MMDVAE


def create_mmd_vae(cfg: DictConfig) -> MMDVAE:
    """Create an MMDVAE from configuration.

    Args:
        cfg: OmegaConf configuration with ``model`` and ``data.image_size``.

    Returns:
        Initialized MMDVAE.

    Raises:
        ValueError: If ``model.variant`` is not ``"mmd_vae"``.
    """
    variant = cfg.model.get("variant", "mmd_vae")
    if variant != "mmd_vae":
        raise ValueError(f"Unknown model variant: {variant}")

    return MMDVAE(
        input_channels=cfg.model.input_channels,
        image_size=tuple(cfg.data.image_size),
        z_dim=cfg.model.z_dim,
        base_filters=cfg.model.base_filters,
        num_stages=cfg.model.get("num_stages", 2),
        dense_units=cfg.model.get("dense_units", 256),
        activation=cfg.model.get("activation", "leaky_relu"),
        norm_type=cfg.model.get("norm_type", "none"),
        num_groups=cfg.model.get("num_groups", 8),
        init_method=cfg.model.get("init_method", "kaiming"),
    )
