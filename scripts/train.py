#!/usr/bin/env python
"""Training script for the MMD-VAE (stage one).

Workflow:
1. Load configuration from YAML (plus key=value overrides)
2. Create run directory with timestamp
3. Setup logging
4. Load MNIST and create train/val splits
5. Build data loaders
6. Instantiate model and Lightning module, optionally from pretrained weights
7. Train (unless train.fit=false)
8. Export encoder/decoder weights to the Raw directory
9. Evaluate on the MNIST test split and save figures

Usage:
    # Default config
    python scripts/train.py

    # Custom config with overrides
    python scripts/train.py --config path/to/config.yaml train.max_epochs=5 model.z_dim=8

    # Skip training, only evaluate the pretrained weights in paths.raw_dir
    python scripts/train.py train.fit=false

    # Resume from checkpoint
    python scripts/train.py --resume path/to/checkpoint.ckpt
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Optional

import pytorch_lightning as pl
import torch
from pytorch_lightning.callbacks import ModelCheckpoint
from pytorch_lightning.loggers import CSVLogger

from longvae.data import (
    create_train_val_split,
    get_dataloaders,
    get_test_dataloader,
    load_mnist_records,
)
from longvae.evaluation import (
    compute_aggregate_mmd,
    compute_reconstruction_error,
    load_metrics_csv,
    plot_latent_space,
    plot_reconstructions,
    plot_training_curves,
    save_figure,
    set_publication_style,
)
from longvae.inference import encode_images
from longvae.losses import sample_prior
from longvae.training import MMDVAELitModule, ReconstructionCallback, TrainingLoggingCallback
from longvae.utils import (
    create_run_dir,
    get_value,
    load_config,
    load_model_from_checkpoint,
    load_model_weights,
    save_config,
    save_model_weights,
    save_split_csvs,
    set_seed,
    setup_logging,
    to_dict,
    validate_config,
)


logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Train the MMD-VAE on resized MNIST")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (default: packaged mnist_mmd_vae.yaml)",
    )
    parser.add_argument(
        "--resume",
        type=str,
        default=None,
        help="Path to checkpoint to resume from",
    )
    parser.add_argument(
        "overrides",
        nargs="*",
        help="Config overrides in key=value form, e.g. train.max_epochs=5",
    )
    return parser.parse_args()


def fit(cfg, lit_module: MMDVAELitModule, train_loader, val_loader, run_dir: Path, resume: Optional[str] = None) -> None:
    """Run Lightning training and reload the best checkpoint into the model."""
    checkpoint_callback = ModelCheckpoint(
        dirpath=run_dir / "checkpoints",
        filename="mmd-vae-{epoch:03d}",
        monitor="val/loss",
        mode="min",
        save_top_k=1,
        save_last=True,
    )
    callbacks = [
        checkpoint_callback,
        ReconstructionCallback(
            run_dir=run_dir,
            recon_every_n_epochs=cfg.logging.recon_every_n_epochs,
            num_recon_samples=cfg.logging.num_recon_samples,
        ),
        TrainingLoggingCallback(min_logs_per_epoch=get_value(cfg, "logging.min_logs_per_epoch", 3)),
    ]

    csv_logger = CSVLogger(save_dir=run_dir / "logs", name="", version="")
    # Full run config next to metrics.csv (logs/hparams.yaml)
    csv_logger.log_hyperparams(to_dict(cfg))

    trainer = pl.Trainer(
        max_epochs=cfg.train.max_epochs,
        accelerator=get_value(cfg, "train.accelerator", "auto"),
        devices=get_value(cfg, "train.devices", 1),
        precision=get_value(cfg, "train.precision", "32-true"),
        callbacks=callbacks,
        logger=csv_logger,
        log_every_n_steps=get_value(cfg, "logging.log_every_n_steps", 50),
        enable_progress_bar=False,
        deterministic=True,
    )

    logger.info("Trainer configuration:")
    logger.info(f"  Max epochs: {cfg.train.max_epochs}")
    logger.info(f"  Precision: {trainer.precision}")
    logger.info(f"  Accelerator: {trainer.accelerator}")

    logger.info("Starting training...")
    trainer.fit(
        lit_module,
        train_dataloaders=train_loader,
        val_dataloaders=val_loader,
        ckpt_path=resume,
    )
    logger.info("Training complete!")

    best_path = checkpoint_callback.best_model_path
    if best_path:
        logger.info(f"Best checkpoint: {best_path} (val/loss={checkpoint_callback.best_model_score:.5f})")
        load_model_from_checkpoint(lit_module.model, best_path)

    metrics_csv = run_dir / "logs" / "metrics.csv"
    if metrics_csv.exists():
        fig = plot_training_curves(load_metrics_csv(metrics_csv))
        save_figure(fig, "training_curves", run_dir / "figures")


def evaluate(cfg, model: torch.nn.Module, run_dir: Path) -> dict:
    """Evaluate reconstruction and latent regularity on the MNIST test split."""
    test_records = load_mnist_records(
        cfg.paths.data_root,
        train=False,
        download=get_value(cfg, "data.download", True),
        max_samples=get_value(cfg, "data.max_test_samples", None),
    )
    test_loader = get_test_dataloader(cfg, test_records)

    results = {
        "test_recon_mse": compute_reconstruction_error(model, test_loader),
        "test_aggregate_mmd": compute_aggregate_mmd(model, test_loader),
    }

    with open(run_dir / "tables" / "test_metrics.json", "w") as f:
        json.dump(results, f, indent=2)

    # Figures on the first test batch and up to 2000 codes
    batch = next(iter(test_loader))
    x = batch["image"]
    with torch.no_grad():
        x_hat, _ = model(x.to(next(model.parameters()).device))
    fig = plot_reconstructions(x.numpy(), x_hat.cpu().numpy(), n_samples=cfg.logging.num_recon_samples,
                               title="Test reconstructions")
    save_figure(fig, "test_reconstructions", run_dir / "figures")

    images = torch.cat([b["image"] for _, b in zip(range(16), test_loader)], dim=0)[:2000]
    labels = [r["label"] for r in test_records[:len(images)]]
    latents = encode_images(model, images)
    prior = sample_prior(len(latents), latents.shape[1]).numpy()
    fig = plot_latent_space(latents, labels=labels, prior_samples=prior)
    save_figure(fig, "latent_space", run_dir / "figures")

    return results


def main():
    """Main training function."""
    args = parse_args()

    cfg = load_config(args.config, overrides=args.overrides)
    validate_config(cfg)

    run_dir = create_run_dir(cfg.paths.save_dir, experiment_name="mmd_vae")

    setup_logging(run_dir)
    logger.info("Starting MMD-VAE training")
    logger.info(f"Run directory: {run_dir}")

    set_seed(cfg.train.seed, workers=True)
    save_config(cfg, run_dir / "config_resolved.yaml")
    set_publication_style()

    logger.info(f"Loading MNIST from {cfg.paths.data_root}")
    records = load_mnist_records(
        cfg.paths.data_root,
        train=True,
        download=get_value(cfg, "data.download", True),
        max_samples=get_value(cfg, "data.max_train_samples", None),
    )
    train_records, val_records = create_train_val_split(
        records,
        val_split=cfg.data.val_split,
        seed=cfg.train.seed,
    )
    save_split_csvs(train_records, val_records, run_dir)

    lit_module = MMDVAELitModule.from_config(cfg)

    total_params = sum(p.numel() for p in lit_module.model.parameters())
    logger.info(f"Model parameters: {total_params:,} (z_dim={cfg.model.z_dim})")

    raw_dir = Path(cfg.paths.raw_dir)
    do_fit = get_value(cfg, "train.fit", True)
    if get_value(cfg, "train.init_from_raw", False) or not do_fit:
        load_model_weights(lit_module.model, raw_dir)

    if do_fit:
        train_loader, val_loader = get_dataloaders(cfg, train_records, val_records)
        fit(cfg, lit_module, train_loader, val_loader, run_dir, resume=args.resume)
        if get_value(cfg, "train.save_weights", True):
            save_model_weights(lit_module.model, raw_dir)
    else:
        logger.info(f"train.fit=false: using pretrained weights from {raw_dir}")

    results = evaluate(cfg, lit_module.model, run_dir)
    for key, value in results.items():
        logger.info(f"  {key}: {value:.6f}")
    logger.info(f"Outputs written to {run_dir}")


if __name__ == "__main__":
    main()
