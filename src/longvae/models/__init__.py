"""Models module."""

from .encoder import Encoder2D
from .decoder import Decoder2D
from .mmd_vae import MMDVAE
from .factory import create_mmd_vae

__all__ = ["Encoder2D", "Decoder2D", "MMDVAE", "create_mmd_vae"]
