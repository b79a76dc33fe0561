"""Checkpoint loading and weight persistence utilities.

This module provides:
- Saving/loading the encoder and decoder weight files kept in the "Raw" folder
- Loading Lightning checkpoints or raw state dicts into an MMDVAE
"""

import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import torch
from torch import nn

logger = logging.getLogger(__name__)

ENCODER_WEIGHTS = "mmd_vae_encoder.pt"
DECODER_WEIGHTS = "mmd_vae_decoder.pt"

# Prefix added by MMDVAELitModule (self.model = ...)
LIGHTNING_PREFIX = "model."


def get_weight_paths(raw_dir: Union[str, Path]) -> Tuple[Path, Path]:
    """Return the (encoder, decoder) weight file paths inside ``raw_dir``."""
    raw_dir = Path(raw_dir)
    return raw_dir / ENCODER_WEIGHTS, raw_dir / DECODER_WEIGHTS


def save_model_weights(model: nn.Module, raw_dir: Union[str, Path]) -> Tuple[Path, Path]:
    """Save encoder and decoder state dicts as two separate files.

    Args:
        model: MMDVAE with ``encoder`` and ``decoder`` submodules.
        raw_dir: Output directory (created if missing).

    Returns:
        Tuple of (encoder_path, decoder_path).
    """
    encoder_path, decoder_path = get_weight_paths(raw_dir)
    encoder_path.parent.mkdir(parents=True, exist_ok=True)

    torch.save(model.encoder.state_dict(), encoder_path)
    torch.save(model.decoder.state_dict(), decoder_path)

    logger.info(f"Saved encoder weights to {encoder_path}")
    logger.info(f"Saved decoder weights to {decoder_path}")
    return encoder_path, decoder_path


def load_model_weights(
    model: nn.Module,
    raw_dir: Union[str, Path],
    map_location: str = "cpu",
) -> nn.Module:
    """Load encoder and decoder weights written by :func:`save_model_weights`.

    Args:
        model: MMDVAE instance with matching architecture.
        raw_dir: Directory holding the weight files.
        map_location: Device to load weights to.

    Returns:
        The same model, with weights loaded.

    Raises:
        FileNotFoundError: If either weight file is missing.
    """
    encoder_path, decoder_path = get_weight_paths(raw_dir)
    for path in (encoder_path, decoder_path):
        if not path.exists():
            raise FileNotFoundError(f"Pretrained weights not found: {path}")

    model.encoder.load_state_dict(
        torch.load(encoder_path, map_location=map_location, weights_only=True)
    )
    model.decoder.load_state_dict(
        torch.load(decoder_path, map_location=map_location, weights_only=True)
    )
    logger.info(f"Loaded pretrained encoder/decoder weights from {Path(raw_dir)}")
    return model


def load_checkpoint(
    ckpt_path: Union[str, Path],
    map_location: str = "cpu",
) -> Dict[str, Any]:
    """Load checkpoint from disk.

    Accepts either a Lightning ``.ckpt`` (dict with ``state_dict`` and
    ``epoch``) or a raw state dict saved with ``torch.save``.

    Args:
        ckpt_path: Path to checkpoint file.
        map_location: Device to load weights to.

    Returns:
        Checkpoint dictionary with keys:
        - 'state_dict': Model weights
        - 'epoch': Training epoch (may be None)

    Raises:
        FileNotFoundError: If checkpoint doesn't exist.
        RuntimeError: If checkpoint format is invalid.
    """
    ckpt_path = Path(ckpt_path)
    if not ckpt_path.exists():
        raise FileNotFoundError(f"Checkpoint not found: {ckpt_path}")

    # Lightning checkpoints carry hyperparameters and loop state
    checkpoint = torch.load(ckpt_path, map_location=map_location, weights_only=False)

    if isinstance(checkpoint, dict) and "state_dict" in checkpoint:
        logger.info(
            f"Loaded checkpoint from {ckpt_path.name}: "
            f"epoch={checkpoint.get('epoch', 'N/A')}"
        )
        return checkpoint
    elif isinstance(checkpoint, dict):
        logger.info(f"Loaded raw state_dict from {ckpt_path.name}")
        return {"state_dict": checkpoint, "epoch": None}
    else:
        raise RuntimeError(
            f"Invalid checkpoint format: expected dict, got {type(checkpoint)}"
        )


def strip_prefix(
    state_dict: Dict[str, torch.Tensor],
    prefix: str = LIGHTNING_PREFIX,
) -> Dict[str, torch.Tensor]:
    """Remove ``prefix`` from keys that carry it; other keys pass through."""
    return {
        (k[len(prefix):] if k.startswith(prefix) else k): v
        for k, v in state_dict.items()
    }


def load_model_from_checkpoint(
    model: nn.Module,
    ckpt_path: Union[str, Path],
    map_location: str = "cpu",
) -> nn.Module:
    """Load a Lightning or raw checkpoint into an MMDVAE.

    Args:
        model: MMDVAE instance with matching architecture.
        ckpt_path: Path to ``.ckpt`` or ``.pt`` file.
        map_location: Device to load weights to.

    Returns:
        The same model, with weights loaded.
    """
    checkpoint = load_checkpoint(ckpt_path, map_location=map_location)
    state_dict = strip_prefix(checkpoint["state_dict"])
    model.load_state_dict(state_dict, strict=True)
    return model
