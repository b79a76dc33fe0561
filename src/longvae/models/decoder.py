"""
This module implements the 2D transposed-convolution decoder of the MMD-VAE.
"""

from typing import Sequence

import torch
import torch.nn as nn

from .components import get_activation, get_norm, initialize_weights, up_block
from .encoder import check_image_size


class Decoder2D(nn.Module):
    """2D transposed-convolution decoder, mirror of :class:`Encoder2D`.

    Architecture (for 12x12 output, num_stages=2):
        - Linear: z_dim -> dense_units -> (base_filters*2) * 3 * 3
        - Reshape to [B, base_filters*2, 3, 3]
        - Stage 1: 3 -> 6, channels=base_filters
        - Stage 2: 6 -> 12, channels=output_channels, sigmoid
    """

    def __init__(
        self,
        z_dim: int = 16,
        output_channels: int = 1,
        image_size: Sequence[int] = (12, 12),
        base_filters: int = 32,
        num_stages: int = 2,
        dense_units: int = 256,
        activation: str = "leaky_relu",
        norm_type: str = "none",
        num_groups: int = 8,
        init_method: str = "kaiming",
    ):
        """Initialize Decoder2D.

        Args:
            z_dim: Latent space dimensionality.
            output_channels: Number of output channels.
            image_size: Output spatial size (H, W).
            base_filters: Filters of the last hidden stage.
            num_stages: Number of stride-2 transposed convolution stages.
            dense_units: Width of the hidden dense layer.
            activation: Activation function name.
            norm_type: Normalization type name.
            num_groups: Number of groups for GroupNorm.
            init_method: Weight initialization method.
        """
        super().__init__()

        if num_stages < 1:
            raise ValueError(f"num_stages must be >= 1, got {num_stages}")

        self.initial_size = check_image_size(image_size, num_stages)
        self.initial_channels = base_filters * (2 ** (num_stages - 1))

        h0, w0 = self.initial_size
        self.fc = nn.Sequential(
            nn.Linear(z_dim, dense_units),
            get_activation(activation),
            nn.Linear(dense_units, self.initial_channels * h0 * w0),
            get_activation(activation),
        )

        stages = []
        in_channels = self.initial_channels
        for i in range(num_stages - 1):
            out_channels = in_channels // 2
            stages.append(up_block(in_channels, out_channels, activation, norm_type, num_groups))
            in_channels = out_channels
        self.upsample = nn.Sequential(*stages)

        # Last stage maps to pixel intensities in [0, 1]
        self.final = nn.Sequential(
            nn.ConvTranspose2d(in_channels, output_channels, kernel_size=4, stride=2, padding=1),
            nn.Sigmoid(),
        )

        initialize_weights(self, init_method)

    def forward(self, z: torch.Tensor) -> torch.Tensor:
        """Decode latent codes to images.

        Args:
            z: Latent codes [B, z_dim].

        Returns:
            x_hat: Reconstruction [B, output_channels, H, W] in [0, 1].
        """
        x = self.fc(z)
        x = x.view(z.size(0), self.initial_channels, *self.initial_size)
        x = self.upsample(x)
        return self.final(x)
