"""MMD-VAE model for small single-channel images.

The model is the composition decoder(encoder(x)). Encoder and decoder are
attributes of the model, so the stand-alone encoder used to embed subject
visits and the stand-alone decoder used to render forecasts share their
layers (and weights) with the end-to-end network that is trained.

Input: [B, 1, 12, 12] (resized MNIST digits)
Output: x_hat [B, 1, 12, 12], z [B, z_dim]
"""

from typing import Sequence, Tuple

import torch
import torch.nn as nn

from .decoder import Decoder2D
from .encoder import Encoder2D


class MMDVAE(nn.Module):
    """Convolutional autoencoder trained with an MMD latent regularizer.

    Forward signature:
        forward(x) -> (x_hat, z)
    """

    def __init__(
        self,
        input_channels: int = 1,
        image_size: Sequence[int] = (12, 12),
        z_dim: int = 16,
        base_filters: int = 32,
        num_stages: int = 2,
        dense_units: int = 256,
        activation: str = "leaky_relu",
        norm_type: str = "none",
        num_groups: int = 8,
        init_method: str = "kaiming",
    ):
        """Initialize MMDVAE.

        Args:
            input_channels: Number of image channels.
            image_size: Spatial size (H, W).
            z_dim: Latent space dimensionality.
            base_filters: Base number of filters for encoder/decoder.
            num_stages: Number of stride-2 stages in each network.
            dense_units: Width of the hidden dense layers.
            activation: Activation function name.
            norm_type: Normalization type name.
            num_groups: Number of groups for GroupNorm.
            init_method: Weight initialization method.
        """
        super().__init__()

        self.z_dim = z_dim
        self.image_size = tuple(int(s) for s in image_size)
        self.input_channels = input_channels

        self.encoder = Encoder2D(
            input_channels=input_channels,
            image_size=image_size,
            base_filters=base_filters,
            z_dim=z_dim,
            num_stages=num_stages,
            dense_units=dense_units,
            activation=activation,
            norm_type=norm_type,
            num_groups=num_groups,
            init_method=init_method,
        )

        self.decoder = Decoder2D(
            z_dim=z_dim,
            output_channels=input_channels,
            image_size=image_size,
            base_filters=base_filters,
            num_stages=num_stages,
            dense_units=dense_units,
            activation=activation,
            norm_type=norm_type,
            num_groups=num_groups,
            init_method=init_method,
        )

    def encode(self, x: torch.Tensor) -> torch.Tensor:
        """Encode images [B, C, H, W] to latent codes [B, z_dim]."""
        return self.encoder(x)

    def decode(self, z: torch.Tensor) -> torch.Tensor:
        """Decode latent codes [B, z_dim] to images [B, C, H, W]."""
        return self.decoder(z)

    def forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """Forward pass through the autoencoder.

        Args:
            x: Input tensor [B, C, H, W].

        Returns:
            x_hat: Reconstruction [B, C, H, W].
            z: Latent codes [B, z_dim].
        """
        z = self.encode(x)
        x_hat = self.decode(z)
        return x_hat, z
