"""PyTorch Lightning module for MMD-VAE training.

The module includes:
- Training and validation steps with reconstruction + MMD loss
- A fresh batch of prior samples drawn every step
- Optional linear warm-up of the MMD weight
- Logging of all loss components
- Adam optimizer configuration
"""

import logging
from typing import Dict, Optional, Tuple

import torch
import pytorch_lightning as pl
from omegaconf import DictConfig

from ..models import MMDVAE, create_mmd_vae
from ..losses import compute_mmd_vae_loss, get_mmd_weight_schedule, sample_prior


logger = logging.getLogger(__name__)


class MMDVAELitModule(pl.LightningModule):
    """PyTorch Lightning module for training the MMD-VAE.

    Attributes:
        model: The MMDVAE model.
        lr: Learning rate for optimizer.
        mmd_weight: Target weight of the MMD term.
        mmd_warmup_epochs: Number of epochs for MMD weight warm-up.
        prior_samples: Prior draws per step for the MMD estimate.
        kernel_bandwidth: Gaussian kernel bandwidth (None = z_dim).
        recon_reduction: Reconstruction reduction ("mean" or "sum").
        current_mmd_weight: Current MMD weight (updated each epoch).
    """

    def __init__(
        self,
        model: MMDVAE,
        lr: float = 1e-3,
        mmd_weight: float = 1.0,
        mmd_warmup_epochs: int = 0,
        prior_samples: int = 200,
        kernel_bandwidth: Optional[float] = None,
        recon_reduction: str = "mean",
    ):
        """Initialize MMDVAELitModule.

        Args:
            model: MMDVAE model instance.
            lr: Learning rate for Adam optimizer.
            mmd_weight: Target MMD weight after warm-up.
            mmd_warmup_epochs: Number of epochs for linear MMD warm-up.
            prior_samples: Number of prior samples drawn per step.
            kernel_bandwidth: Kernel bandwidth; None uses z_dim.
            recon_reduction: Reconstruction loss reduction.
        """
        super().__init__()
        self.save_hyperparameters(ignore=["model"])

        self.model = model
        self.lr = lr
        self.mmd_weight = mmd_weight
        self.mmd_warmup_epochs = mmd_warmup_epochs
        self.prior_samples = prior_samples
        self.kernel_bandwidth = kernel_bandwidth
        self.recon_reduction = recon_reduction
        self.current_mmd_weight = get_mmd_weight_schedule(0, mmd_weight, mmd_warmup_epochs)

    @classmethod
    def from_config(cls, cfg: DictConfig) -> "MMDVAELitModule":
        """Create MMDVAELitModule from configuration.

        Args:
            cfg: Configuration object with model and train parameters.

        Returns:
            Configured MMDVAELitModule instance.
        """
        model = create_mmd_vae(cfg)

        return cls(
            model=model,
            lr=cfg.train.lr,
            mmd_weight=cfg.train.mmd_weight,
            mmd_warmup_epochs=cfg.train.get("mmd_warmup_epochs", 0),
            prior_samples=cfg.train.get("prior_samples", 200),
            kernel_bandwidth=cfg.train.get("kernel_bandwidth", None),
            recon_reduction=cfg.train.get("recon_reduction", "mean"),
        )

    def on_train_epoch_start(self) -> None:
        """Update MMD weight at the start of each training epoch."""
        self.current_mmd_weight = get_mmd_weight_schedule(
            epoch=self.current_epoch,
            mmd_weight=self.mmd_weight,
            warmup_epochs=self.mmd_warmup_epochs,
        )
        logger.debug(f"Epoch {self.current_epoch}: mmd_weight = {self.current_mmd_weight:.4f}")

    def forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """Forward pass through the MMD-VAE.

        Args:
            x: Input tensor [B, C, H, W].

        Returns:
            Tuple of (x_hat, z).
        """
        return self.model(x)

    def _shared_step(self, batch: Dict[str, torch.Tensor], prefix: str) -> torch.Tensor:
        x = batch["image"]
        x_hat, z = self.model(x)

        prior_z = sample_prior(self.prior_samples, z.size(1), device=z.device, dtype=z.dtype)

        loss_dict = compute_mmd_vae_loss(
            x=x,
            x_hat=x_hat,
            z=z,
            prior_z=prior_z,
            mmd_weight=self.current_mmd_weight,
            reduction=self.recon_reduction,
            bandwidth=self.kernel_bandwidth,
        )

        batch_size = x.size(0)
        self.log(f"{prefix}/loss", loss_dict["loss"], on_step=False, on_epoch=True, prog_bar=True, batch_size=batch_size)
        self.log(f"{prefix}/recon", loss_dict["recon"], on_step=False, on_epoch=True, batch_size=batch_size)
        self.log(f"{prefix}/mmd", loss_dict["mmd"], on_step=False, on_epoch=True, batch_size=batch_size)
        self.log(f"{prefix}/mmd_weight", self.current_mmd_weight, on_step=False, on_epoch=True, batch_size=batch_size)

        return loss_dict["loss"]

    def training_step(
        self,
        batch: Dict[str, torch.Tensor],
        batch_idx: int,
    ) -> torch.Tensor:
        """Execute single training step.

        Args:
            batch: Dict containing "image" tensor [B, C, H, W].
            batch_idx: Index of current batch.

        Returns:
            Total loss for optimization.
        """
        return self._shared_step(batch, "train")

    def validation_step(
        self,
        batch: Dict[str, torch.Tensor],
        batch_idx: int,
    ) -> torch.Tensor:
        """Execute single validation step."""
        return self._shared_step(batch, "val")

    def configure_optimizers(self) -> torch.optim.Optimizer:
        """Configure Adam optimizer."""
        return torch.optim.Adam(self.model.parameters(), lr=self.lr)
