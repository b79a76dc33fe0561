"""MONAI transforms for MNIST preprocessing.

All transforms are dict-based and operate on the "image" key. Raw MNIST
digits are uint8 [28, 28]; after transforms:
    - sample["image"]: float32 tensor [C=1, H, W] with values in [0, 1]
"""

from typing import Sequence

import torch
from monai.transforms import (
    Compose,
    EnsureChannelFirstd,
    EnsureTyped,
    Resized,
    ScaleIntensityRanged,
)


IMAGE_KEY = "image"


def get_transforms(image_size: Sequence[int] = (12, 12)) -> Compose:
    """Get the deterministic preprocessing pipeline.

    The same pipeline is used for training, validation, test and for the
    baseline images of simulated subjects, so every image the encoder sees
    comes from one geometry and intensity range.

    Args:
        image_size: Target spatial size (H, W).

    Returns:
        MONAI Compose transform pipeline.
    """
    return Compose([
        # 1. [H, W] -> [1, H, W]
        EnsureChannelFirstd(keys=[IMAGE_KEY], channel_dim="no_channel"),
        # 2. Rescale uint8 intensities to [0, 1]
        ScaleIntensityRanged(
            keys=[IMAGE_KEY], a_min=0.0, a_max=255.0, b_min=0.0, b_max=1.0, clip=True,
        ),
        # 3. Downsample with area averaging (stays inside [0, 1])
        Resized(keys=[IMAGE_KEY], spatial_size=tuple(image_size), mode="area"),
        # 4. Plain float32 tensors for the default collate
        EnsureTyped(keys=[IMAGE_KEY], data_type="tensor", dtype=torch.float32, track_meta=False),
    ])
