"""Held-out evaluation metrics for the MMD-VAE and its forecasts.

Key Components:
    - compute_reconstruction_error: mean squared error over a DataLoader
    - compute_aggregate_mmd: MMD² between encoded held-out data and the prior
    - summarize_forecasts: aggregate forecast errors vs. the LOCF baseline
"""

import logging
from typing import Dict, List, Optional, Union

import numpy as np
import torch
from torch import nn
from torch.utils.data import DataLoader

from ..inference.forecast import SubjectForecast
from ..losses import compute_mmd, sample_prior

logger = logging.getLogger(__name__)


def _model_device(model: nn.Module, device: Optional[Union[str, torch.device]]) -> torch.device:
    return torch.device(device) if device is not None else next(model.parameters()).device


@torch.no_grad()
def compute_reconstruction_error(
    model: nn.Module,
    loader: DataLoader,
    device: Optional[Union[str, torch.device]] = None,
) -> float:
    """Mean squared reconstruction error over all pixels of a loader.

    Args:
        model: MMDVAE.
        loader: DataLoader yielding dicts with an "image" tensor.
        device: Device to run on. Defaults to the model's device.

    Returns:
        Pixel-averaged MSE.
    """
    device = _model_device(model, device)
    model.eval()

    total_se = 0.0
    total_count = 0
    for batch in loader:
        x = batch["image"].to(device)
        x_hat, _ = model(x)
        total_se += torch.sum((x_hat - x) ** 2).item()
        total_count += x.numel()

    if total_count == 0:
        raise ValueError("Loader yielded no samples")

    mse = total_se / total_count
    logger.info(f"Held-out reconstruction MSE: {mse:.6f} over {total_count} pixels")
    return mse


@torch.no_grad()
def compute_aggregate_mmd(
    model: nn.Module,
    loader: DataLoader,
    n_prior: int = 1000,
    max_samples: int = 2000,
    device: Optional[Union[str, torch.device]] = None,
    seed: int = 0,
) -> float:
    """MMD² between encoded held-out images and prior samples.

    Args:
        model: MMDVAE.
        loader: DataLoader yielding dicts with an "image" tensor.
        n_prior: Number of prior samples.
        max_samples: Cap on encoded samples (the kernel matrix is quadratic).
        device: Device to run on.
        seed: Seed for the prior draws.

    Returns:
        MMD² estimate.
    """
    device = _model_device(model, device)
    model.eval()

    codes = []
    n_codes = 0
    for batch in loader:
        z = model.encode(batch["image"].to(device)).cpu()
        codes.append(z)
        n_codes += z.size(0)
        if n_codes >= max_samples:
            break

    if not codes:
        raise ValueError("Loader yielded no samples")

    z = torch.cat(codes, dim=0)[:max_samples]
    generator = torch.Generator().manual_seed(seed)
    prior = sample_prior(n_prior, z.size(1), generator=generator)
    mmd = compute_mmd(prior, z).item()
    logger.info(f"Aggregate posterior MMD²: {mmd:.6f} ({z.size(0)} codes, {n_prior} prior samples)")
    return mmd


def summarize_forecasts(forecasts: List[SubjectForecast]) -> Dict[str, float]:
    """Aggregate forecast errors over subjects and target visits.

    Returns:
        Dict with mean/std image MSE, latent MSE, LOCF MSE, the number of
        forecasts and the fraction where the forecast beats LOCF.
    """
    if not forecasts:
        raise ValueError("No forecasts to summarize")

    image_mse = np.concatenate([fc.image_mse for fc in forecasts])
    latent_mse = np.concatenate([fc.latent_mse for fc in forecasts])
    locf_mse = np.concatenate([fc.locf_mse for fc in forecasts])

    summary = {
        "n_forecasts": int(len(image_mse)),
        "image_mse_mean": float(image_mse.mean()),
        "image_mse_std": float(image_mse.std()),
        "latent_mse_mean": float(latent_mse.mean()),
        "latent_mse_std": float(latent_mse.std()),
        "locf_mse_mean": float(locf_mse.mean()),
        "locf_mse_std": float(locf_mse.std()),
        "win_rate_vs_locf": float(np.mean(image_mse < locf_mse)),
    }
    logger.info(
        f"Forecast image MSE {summary['image_mse_mean']:.5f} "
        f"(LOCF {summary['locf_mse_mean']:.5f}, win rate {summary['win_rate_vs_locf']:.2f})"
    )
    return summary
