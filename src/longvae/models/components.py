"""
Building blocks shared by the 2D encoder and decoder: activation and
normalization lookups plus strided (transposed) convolution stages.
"""

import torch.nn as nn


def get_activation(name: str) -> nn.Module:
    """Get activation function by name."""
    if name.lower() == "relu":
        return nn.ReLU(inplace=True)
    elif name.lower() == "leaky_relu":
        return nn.LeakyReLU(0.2, inplace=True)
    elif name.lower() in ["silu", "swish"]:
        return nn.SiLU(inplace=True)
    elif name.lower() == "gelu":
        return nn.GELU()
    else:
        raise ValueError(f"Unknown activation: {name}")


def get_norm(name: str, channels: int, num_groups: int = 8) -> nn.Module:
    """Get normalization layer by name."""
    if name.lower() == "group":
        return nn.GroupNorm(min(num_groups, channels), channels)
    elif name.lower() == "batch":
        return nn.BatchNorm2d(channels)
    elif name.lower() == "instance":
        return nn.InstanceNorm2d(channels)
    elif name.lower() == "none":
        return nn.Identity()
    else:
        raise ValueError(f"Unknown norm: {name}")


def down_block(
    in_channels: int,
    out_channels: int,
    activation: str = "leaky_relu",
    norm_type: str = "none",
    num_groups: int = 8,
) -> nn.Sequential:
    """Conv 4x4 stride 2 -> norm -> activation. Halves H and W."""
    return nn.Sequential(
        nn.Conv2d(in_channels, out_channels, kernel_size=4, stride=2, padding=1),
        get_norm(norm_type, out_channels, num_groups),
        get_activation(activation),
    )


def up_block(
    in_channels: int,
    out_channels: int,
    activation: str = "leaky_relu",
    norm_type: str = "none",
    num_groups: int = 8,
) -> nn.Sequential:
    """ConvTranspose 4x4 stride 2 -> norm -> activation. Doubles H and W."""
    return nn.Sequential(
        nn.ConvTranspose2d(in_channels, out_channels, kernel_size=4, stride=2, padding=1),
        get_norm(norm_type, out_channels, num_groups),
        get_activation(activation),
    )


def initialize_weights(module: nn.Module, init_method: str = "kaiming") -> None:
    """Initialize conv/linear weights in place."""
    for m in module.modules():
        if isinstance(m, (nn.Conv2d, nn.ConvTranspose2d, nn.Linear)):
            if init_method == "kaiming":
                nn.init.kaiming_normal_(m.weight, a=0.2, nonlinearity="leaky_relu")
            elif init_method == "xavier":
                nn.init.xavier_normal_(m.weight)
            elif init_method == "orthogonal":
                nn.init.orthogonal_(m.weight)
            else:
                raise ValueError(f"Unknown init method: {init_method}")
            if m.bias is not None:
                nn.init.constant_(m.bias, 0)
        elif isinstance(m, (nn.GroupNorm, nn.BatchNorm2d)):
            nn.init.constant_(m.weight, 1)
            nn.init.constant_(m.bias, 0)
