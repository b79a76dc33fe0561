"""Training module."""

from .lit_module import MMDVAELitModule
from .callbacks import ReconstructionCallback, TrainingLoggingCallback

__all__ = ["MMDVAELitModule", "ReconstructionCallback", "TrainingLoggingCallback"]
