"""
Encoding and decoding through a trained MMD-VAE.

Runs the shared encoder/decoder in eval mode without gradients and returns
NumPy arrays for the regression and plotting code downstream.
"""

import logging
from typing import Dict, List, Optional, Union

import numpy as np
import torch
from torch import nn

from ..data.longitudinal import SubjectTrajectory

logger = logging.getLogger(__name__)

TensorLike = Union[np.ndarray, torch.Tensor]


def _resolve_device(model: nn.Module, device: Optional[Union[str, torch.device]]) -> torch.device:
    if device is not None:
        return torch.device(device)
    return next(model.parameters()).device


@torch.no_grad()
def encode_images(
    model: nn.Module,
    images: TensorLike,
    batch_size: int = 256,
    device: Optional[Union[str, torch.device]] = None,
) -> np.ndarray:
    """Encode images to latent codes.

    Args:
        model: MMDVAE.
        images: Images [N, C, H, W] in [0, 1].
        batch_size: Inference batch size.
        device: Device to run on. Defaults to the model's device.

    Returns:
        Latent codes [N, z_dim].
    """
    device = _resolve_device(model, device)
    x = images if isinstance(images, torch.Tensor) else torch.from_numpy(np.asarray(images))
    x = x.float()
    if x.dim() != 4:
        raise ValueError(f"Expected images [N, C, H, W], got shape {tuple(x.shape)}")

    model.eval()
    outputs = []
    for start in range(0, x.size(0), batch_size):
        batch = x[start:start + batch_size].to(device)
        outputs.append(model.encode(batch).cpu())
    return torch.cat(outputs, dim=0).numpy()


@torch.no_grad()
def decode_latents(
    model: nn.Module,
    latents: TensorLike,
    device: Optional[Union[str, torch.device]] = None,
) -> np.ndarray:
    """Decode latent codes to images.

    Args:
        model: MMDVAE.
        latents: Latent codes [N, z_dim].
        device: Device to run on. Defaults to the model's device.

    Returns:
        Images [N, C, H, W] in [0, 1].
    """
    device = _resolve_device(model, device)
    z = latents if isinstance(latents, torch.Tensor) else torch.from_numpy(np.asarray(latents))
    z = z.float()
    if z.dim() == 1:
        z = z.unsqueeze(0)

    model.eval()
    return model.decode(z.to(device)).cpu().numpy()


def encode_cohort(
    model: nn.Module,
    cohort: List[SubjectTrajectory],
    device: Optional[Union[str, torch.device]] = None,
) -> Dict[str, np.ndarray]:
    """Encode every visit of every subject.

    Returns:
        Mapping subject_id -> latent codes [T, z_dim].
    """
    latents = {
        subject.subject_id: encode_images(model, subject.images, device=device)
        for subject in cohort
    }
    logger.info(f"Encoded {len(cohort)} subject trajectories")
    return latents
