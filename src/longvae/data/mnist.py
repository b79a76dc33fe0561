"""Dataset utilities for MNIST.

This module provides functions for:
- Loading MNIST into a list of record dicts
- Creating deterministic train/val splits
- Building MONAI CacheDatasets and PyTorch DataLoaders
- Preprocessing raw digit arrays outside a DataLoader
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import torch
from monai.data import CacheDataset
from omegaconf import DictConfig
from torch.utils.data import DataLoader
from torchvision.datasets import MNIST

from .transforms import get_transforms


logger = logging.getLogger(__name__)


def load_mnist_records(
    root: Union[str, Path],
    train: bool = True,
    download: bool = True,
    max_samples: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Load MNIST digits as a list of record dicts.

    Args:
        root: Directory where torchvision stores MNIST.
        train: Load the 60k training split (True) or the 10k test split.
        download: Download the files if they are missing.
        max_samples: Optional cap on the number of records (first N).

    Returns:
        List of dicts with keys "image" (uint8 [28, 28]), "label" and "id".
    """
    dataset = MNIST(root=str(root), train=train, download=download)
    images = dataset.data.numpy()
    labels = dataset.targets.numpy()

    if max_samples is not None:
        images = images[:max_samples]
        labels = labels[:max_samples]

    records = [
        {"image": images[i], "label": int(labels[i]), "id": i}
        for i in range(len(images))
    ]

    split = "train" if train else "test"
    logger.info(f"Loaded {len(records)} MNIST {split} records from {root}")
    return records


def create_train_val_split(
    records: List[Dict[str, Any]],
    val_split: float,
    seed: int,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Create deterministic train/val split from a record list.

    Args:
        records: List of record dicts.
        val_split: Fraction of records to use for validation (0.0 to 1.0, exclusive).
        seed: Random seed for reproducible splitting.

    Returns:
        Tuple of (train_records, val_records).

    Raises:
        ValueError: If val_split is out of range or there are fewer than 2 records.
    """
    if not 0.0 < val_split < 1.0:
        raise ValueError(f"val_split must be in (0, 1), got {val_split}")

    n_records = len(records)
    if n_records < 2:
        raise ValueError(f"Need at least 2 records to split, got {n_records}")

    n_val = max(1, int(n_records * val_split))
    n_train = n_records - n_val

    # Deterministic shuffle using seeded generator
    generator = torch.Generator().manual_seed(seed)
    indices = torch.randperm(n_records, generator=generator).tolist()

    train_records = [records[i] for i in sorted(indices[:n_train])]
    val_records = [records[i] for i in sorted(indices[n_train:])]

    logger.info(f"Split: {len(train_records)} train, {len(val_records)} val records")

    return train_records, val_records


def _build_loader(
    records: List[Dict[str, Any]],
    image_size: Sequence[int],
    batch_size: int,
    num_workers: int,
    shuffle: bool,
    drop_last: bool,
    cache_rate: float,
) -> DataLoader:
    dataset = CacheDataset(
        data=records,
        transform=get_transforms(image_size),
        cache_rate=cache_rate,
        progress=False,
    )
    return DataLoader(
        dataset,
        batch_size=batch_size,
        shuffle=shuffle,
        num_workers=num_workers,
        pin_memory=torch.cuda.is_available(),
        persistent_workers=num_workers > 0,
        drop_last=drop_last,
    )


def get_dataloaders(
    cfg: DictConfig,
    train_records: List[Dict[str, Any]],
    val_records: List[Dict[str, Any]],
) -> Tuple[DataLoader, DataLoader]:
    """Build train and validation DataLoaders.

    Args:
        cfg: Configuration object with data parameters.
        train_records: Training record dicts.
        val_records: Validation record dicts.

    Returns:
        Tuple of (train_loader, val_loader).
    """
    image_size = tuple(cfg.data.image_size)
    batch_size = cfg.data.batch_size
    num_workers = cfg.data.get("num_workers", 0)
    cache_rate = cfg.data.get("cache_rate", 1.0)

    # Drop the ragged last batch only when there is more than one batch
    train_loader = _build_loader(
        train_records, image_size, batch_size, num_workers,
        shuffle=True, drop_last=len(train_records) > batch_size, cache_rate=cache_rate,
    )
    val_loader = _build_loader(
        val_records, image_size, batch_size, num_workers,
        shuffle=False, drop_last=False, cache_rate=cache_rate,
    )

    logger.info(
        f"DataLoaders created: train={len(train_loader)} batches, "
        f"val={len(val_loader)} batches, batch_size={batch_size}"
    )

    return train_loader, val_loader


def get_test_dataloader(
    cfg: DictConfig,
    records: List[Dict[str, Any]],
) -> DataLoader:
    """Build a deterministic DataLoader for held-out evaluation."""
    return _build_loader(
        records,
        tuple(cfg.data.image_size),
        cfg.data.batch_size,
        cfg.data.get("num_workers", 0),
        shuffle=False,
        drop_last=False,
        cache_rate=cfg.data.get("cache_rate", 1.0),
    )


def preprocess_images(
    images: np.ndarray,
    image_size: Sequence[int] = (12, 12),
) -> torch.Tensor:
    """Apply the preprocessing pipeline to a stack of raw digits.

    Args:
        images: uint8 array [N, 28, 28].
        image_size: Target spatial size (H, W).

    Returns:
        Float tensor [N, 1, H, W] in [0, 1].
    """
    images = np.asarray(images)
    if images.ndim != 3:
        raise ValueError(f"Expected images [N, H, W], got shape {images.shape}")

    transform = get_transforms(image_size)
    processed = [transform({"image": img})["image"] for img in images]
    return torch.stack(processed, dim=0)
