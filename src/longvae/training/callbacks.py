"""Lightning callbacks for MMD-VAE training.

This module implements:
- ReconstructionCallback: Saves input/reconstruction grids at regular intervals
- TrainingLoggingCallback: Console logging of per-epoch progress
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Union

import torch
import pytorch_lightning as pl
from pytorch_lightning.callbacks import Callback

from ..evaluation.visualization import plot_reconstructions, save_figure


logger = logging.getLogger(__name__)


class ReconstructionCallback(Callback):
    """Callback to save reconstruction grids during validation.

    Visualizations are saved to:
        <run_dir>/recon/epoch_<E>.png
    """

    def __init__(
        self,
        run_dir: Union[str, Path],
        recon_every_n_epochs: int = 5,
        num_recon_samples: int = 8,
    ):
        """Initialize ReconstructionCallback.

        Args:
            run_dir: Path to run directory for saving outputs.
            recon_every_n_epochs: Save reconstructions every N epochs.
            num_recon_samples: Number of samples to visualize.
        """
        super().__init__()
        self.run_dir = Path(run_dir)
        self.recon_every_n_epochs = recon_every_n_epochs
        self.num_recon_samples = num_recon_samples

        self._val_outputs = []

    def on_validation_batch_end(
        self,
        trainer: pl.Trainer,
        pl_module: pl.LightningModule,
        outputs: Any,
        batch: Dict[str, torch.Tensor],
        batch_idx: int,
        dataloader_idx: int = 0,
    ) -> None:
        """Store the first few validation samples."""
        if batch_idx == 0:
            self._val_outputs = []

        current_samples = sum(len(o["x"]) for o in self._val_outputs)
        if current_samples < self.num_recon_samples:
            x = batch["image"]
            with torch.no_grad():
                x_hat, _ = pl_module.model(x)
            self._val_outputs.append({"x": x.detach().cpu(), "x_hat": x_hat.detach().cpu()})

    def on_validation_epoch_end(
        self,
        trainer: pl.Trainer,
        pl_module: pl.LightningModule,
    ) -> None:
        """Save the reconstruction grid at the end of selected epochs."""
        epoch = trainer.current_epoch
        if trainer.sanity_checking or epoch % self.recon_every_n_epochs != 0 or not self._val_outputs:
            self._val_outputs = []
            return

        all_x = torch.cat([o["x"] for o in self._val_outputs], dim=0).numpy()
        all_x_hat = torch.cat([o["x_hat"] for o in self._val_outputs], dim=0).numpy()

        fig = plot_reconstructions(
            all_x, all_x_hat, n_samples=self.num_recon_samples, title=f"Epoch {epoch}"
        )
        save_figure(fig, f"epoch_{epoch:04d}", self.run_dir / "recon")
        self._val_outputs = []


class TrainingLoggingCallback(Callback):
    """Callback to log training progress to console.

    Logs the running loss at least ``min_logs_per_epoch`` times per epoch
    and an epoch summary with timing.
    """

    def __init__(self, min_logs_per_epoch: int = 3):
        super().__init__()
        self.min_logs_per_epoch = min_logs_per_epoch
        self._epoch_start_time = None
        self._log_interval = 1
        self._train_losses = []

    def on_train_epoch_start(
        self,
        trainer: pl.Trainer,
        pl_module: pl.LightningModule,
    ) -> None:
        """Record epoch start time and reset counters."""
        self._epoch_start_time = time.time()
        self._train_losses = []

        total_batches = trainer.num_training_batches
        self._log_interval = max(1, int(total_batches) // self.min_logs_per_epoch)

        logger.info(
            f"Epoch {trainer.current_epoch}/{trainer.max_epochs - 1} started "
            f"({total_batches} batches)"
        )

    def on_train_batch_end(
        self,
        trainer: pl.Trainer,
        pl_module: pl.LightningModule,
        outputs: Any,
        batch: Dict[str, torch.Tensor],
        batch_idx: int,
    ) -> None:
        """Log training loss at regular intervals."""
        if isinstance(outputs, dict) and "loss" in outputs:
            loss_val = float(outputs["loss"])
        elif torch.is_tensor(outputs):
            loss_val = outputs.item()
        else:
            return

        self._train_losses.append(loss_val)

        if (batch_idx + 1) % self._log_interval == 0:
            logger.info(
                f"  [Train] Batch {batch_idx + 1}/{trainer.num_training_batches} | loss={loss_val:.5f}"
            )

    def on_train_epoch_end(
        self,
        trainer: pl.Trainer,
        pl_module: pl.LightningModule,
    ) -> None:
        """Log epoch summary with average loss and validation metrics."""
        epoch_time = time.time() - self._epoch_start_time
        avg_loss = sum(self._train_losses) / len(self._train_losses) if self._train_losses else float("nan")

        val_parts = [
            f"{k}={float(v):.5f}"
            for k, v in trainer.callback_metrics.items()
            if k.startswith("val/") and k != "val/mmd_weight"
        ]
        val_str = (" | " + " ".join(val_parts)) if val_parts else ""

        logger.info(
            f"Epoch {trainer.current_epoch} complete | avg_loss={avg_loss:.5f}{val_str} | "
            f"time={epoch_time:.1f}s"
        )
