"""Loss functions module."""

from .mmd import compute_kernel, compute_mmd, sample_prior
from .mmd_vae import compute_mmd_vae_loss, get_mmd_weight_schedule

__all__ = [
    "compute_kernel",
    "compute_mmd",
    "sample_prior",
    "compute_mmd_vae_loss",
    "get_mmd_weight_schedule",
]
