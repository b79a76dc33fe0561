"""MMD-VAE loss: reconstruction error plus MMD between q(z) and p(z).

Loss formula:
    total = recon + mmd_weight * MMD²(prior_z, z)

Where:
    recon = mean_{b,c,h,w} (x_hat - x)^2     (reduction="mean")
          = sum_{b,c,h,w} (x_hat - x)^2      (reduction="sum")
"""

from typing import Dict, Optional

import torch

from .mmd import compute_mmd


def compute_mmd_vae_loss(
    x: torch.Tensor,
    x_hat: torch.Tensor,
    z: torch.Tensor,
    prior_z: torch.Tensor,
    mmd_weight: float = 1.0,
    reduction: str = "mean",
    bandwidth: Optional[float] = None,
) -> Dict[str, torch.Tensor]:
    """Compute the MMD-VAE loss.

    Args:
        x: Original input tensor [B, C, H, W].
        x_hat: Reconstructed tensor [B, C, H, W].
        z: Encoder outputs [B, z_dim].
        prior_z: Samples from the prior [N, z_dim].
        mmd_weight: Weight on the MMD term.
        reduction: Reconstruction reduction ("mean" or "sum").
        bandwidth: Kernel bandwidth; defaults to z_dim.

    Returns:
        Dict with keys:
            - "loss": Total loss (recon + mmd_weight * mmd)
            - "recon": Reconstruction loss (squared error)
            - "mmd": MMD² between prior samples and encoder outputs
    """
    if x.shape != x_hat.shape:
        raise ValueError(
            f"Input and reconstruction shapes differ: {tuple(x.shape)} vs {tuple(x_hat.shape)}"
        )

    squared_error = (x_hat - x) ** 2

    if reduction == "mean":
        recon = torch.mean(squared_error)
    elif reduction == "sum":
        recon = torch.sum(squared_error)
    else:
        raise ValueError(f"Invalid reduction: {reduction}. Must be 'mean' or 'sum'.")

    mmd = compute_mmd(prior_z, z, bandwidth=bandwidth)

    total = recon + mmd_weight * mmd

    return {
        "loss": total,
        "recon": recon,
        "mmd": mmd,
    }


def get_mmd_weight_schedule(
    epoch: int,
    mmd_weight: float,
    warmup_epochs: int,
) -> float:
    """Compute current MMD weight for linear warm-up.

    - weight = 0 at epoch 0
    - weight linearly increases to mmd_weight over warmup_epochs
    - weight stays constant at mmd_weight after that

    Args:
        epoch: Current epoch (0-indexed).
        mmd_weight: Target weight after warm-up.
        warmup_epochs: Number of warm-up epochs.

    Returns:
        Current MMD weight.
    """
    if warmup_epochs <= 0:
        return mmd_weight

    if epoch >= warmup_epochs:
        return mmd_weight

    return (epoch / warmup_epochs) * mmd_weight
