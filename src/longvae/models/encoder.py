"""
This module implements the 2D convolutional encoder of the MMD-VAE.
"""

from typing import Sequence, Tuple

import torch
import torch.nn as nn

from .components import down_block, get_activation, initialize_weights


def check_image_size(image_size: Sequence[int], num_stages: int) -> Tuple[int, int]:
    """Validate that both spatial dims survive ``num_stages`` halvings.

    Returns:
        Bottleneck spatial size (h, w).

    Raises:
        ValueError: If a dim is not divisible by 2 ** num_stages.
    """
    if len(image_size) != 2:
        raise ValueError(f"image_size must have 2 elements, got {list(image_size)}")
    factor = 2 ** num_stages
    h, w = int(image_size[0]), int(image_size[1])
    if h % factor != 0 or w % factor != 0 or h < factor or w < factor:
        raise ValueError(
            f"image_size {[h, w]} must be divisible by 2**num_stages={factor}"
        )
    return h // factor, w // factor


class Encoder2D(nn.Module):
    """2D convolutional encoder.

    Architecture (for 12x12 input, num_stages=2):
        - Stage 1: 12 -> 6, channels=base_filters
        - Stage 2: 6 -> 3, channels=base_filters*2
        - Flatten -> Linear(dense_units) -> activation
        - Linear -> z_dim

    The output is deterministic: the MMD term regularizes the aggregate
    distribution of codes, so no per-sample variance is predicted.
    """

    def __init__(
        self,
        input_channels: int = 1,
        image_size: Sequence[int] = (12, 12),
        base_filters: int = 32,
        z_dim: int = 16,
        num_stages: int = 2,
        dense_units: int = 256,
        activation: str = "leaky_relu",
        norm_type: str = "none",
        num_groups: int = 8,
        init_method: str = "kaiming",
    ):
        """Initialize Encoder2D.

        Args:
            input_channels: Number of input channels.
            image_size: Input spatial size (H, W).
            base_filters: Filters of the first stage (doubled at each stage).
            z_dim: Latent space dimensionality.
            num_stages: Number of stride-2 convolution stages.
            dense_units: Width of the hidden dense layer.
            activation: Activation function name.
            norm_type: Normalization type name.
            num_groups: Number of groups for GroupNorm.
            init_method: Weight initialization method.
        """
        super().__init__()

        if num_stages < 1:
            raise ValueError(f"num_stages must be >= 1, got {num_stages}")

        self.bottleneck_size = check_image_size(image_size, num_stages)

        stages = []
        in_channels = input_channels
        for i in range(num_stages):
            out_channels = base_filters * (2 ** i)
            stages.append(down_block(in_channels, out_channels, activation, norm_type, num_groups))
            in_channels = out_channels
        self.features = nn.Sequential(*stages)

        flat_dim = in_channels * self.bottleneck_size[0] * self.bottleneck_size[1]
        self.fc = nn.Sequential(
            nn.Flatten(),
            nn.Linear(flat_dim, dense_units),
            get_activation(activation),
        )
        self.fc_z = nn.Linear(dense_units, z_dim)

        initialize_weights(self, init_method)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Encode input to latent codes.

        Args:
            x: Input tensor [B, C, H, W].

        Returns:
            z: Latent codes [B, z_dim].
        """
        x = self.features(x)
        x = self.fc(x)
        return self.fc_z(x)
