"""Reproducibility utilities.

Sets random seeds for Python, NumPy, PyTorch, and CUDA.
"""

import logging

import pytorch_lightning as pl

logger = logging.getLogger(__name__)


def set_seed(seed: int, workers: bool = True) -> None:
    """Set random seed for reproducibility.

    Uses Lightning's seed_everything to set seeds for:
    - Python's random module
    - NumPy
    - PyTorch (CPU and CUDA)
    - DataLoader workers (if workers=True)

    Args:
        seed: Random seed value.
        workers: If True, also seed DataLoader workers.
    """
    pl.seed_everything(seed, workers=workers)
    logger.info(f"Set random seed: {seed} (workers={workers})")
