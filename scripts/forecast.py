#!/usr/bin/env python
"""Forecasting script (stage two).

Workflow:
1. Load configuration and the trained MMD-VAE (Raw weights or a checkpoint)
2. Simulate a longitudinal cohort from held-out MNIST digits
3. Encode every visit and fit a per-dimension linear trajectory
4. Extrapolate, decode and score the forecast against the held-out visit
5. Export latent trajectories and forecasts as CSV tables and save figures

Usage:
    # Weights from paths.raw_dir
    python scripts/forecast.py

    # Weights from a Lightning checkpoint, two forecast visits
    python scripts/forecast.py --checkpoint runs/.../checkpoints/last.ckpt forecast.n_forecast_visits=2
"""

import argparse
import json
import logging
from pathlib import Path

import numpy as np
import torch

from longvae.data import build_cohort_from_config, load_mnist_records, preprocess_images
from longvae.evaluation import (
    plot_forecast,
    plot_latent_space,
    plot_latent_trajectories,
    save_figure,
    set_publication_style,
    summarize_forecasts,
)
from longvae.inference import (
    encode_cohort,
    forecast_cohort,
    forecasts_to_frame,
    trajectories_to_frame,
)
from longvae.models import create_mmd_vae
from longvae.utils import (
    create_run_dir,
    get_value,
    load_config,
    load_model_from_checkpoint,
    load_model_weights,
    save_config,
    set_seed,
    setup_logging,
    validate_config,
)


logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Forecast latent trajectories with a trained MMD-VAE")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (default: packaged mnist_mmd_vae.yaml)",
    )
    parser.add_argument(
        "--checkpoint",
        type=str,
        default=None,
        help="Lightning checkpoint to load instead of the Raw weights",
    )
    parser.add_argument(
        "overrides",
        nargs="*",
        help="Config overrides in key=value form, e.g. longitudinal.n_subjects=100",
    )
    return parser.parse_args()


def main():
    """Main forecasting function."""
    args = parse_args()

    cfg = load_config(args.config, overrides=args.overrides)
    validate_config(cfg)

    run_dir = create_run_dir(cfg.paths.save_dir, experiment_name="forecast")
    setup_logging(run_dir, log_filename="forecast.log")
    logger.info(f"Run directory: {run_dir}")

    set_seed(cfg.train.seed)
    save_config(cfg, run_dir / "config_resolved.yaml")
    set_publication_style()

    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
    model = create_mmd_vae(cfg)
    if args.checkpoint:
        load_model_from_checkpoint(model, args.checkpoint)
    else:
        load_model_weights(model, cfg.paths.raw_dir)
    model.to(device).eval()

    # Baseline images come from the test split, unseen during training
    records = load_mnist_records(
        cfg.paths.data_root,
        train=False,
        download=get_value(cfg, "data.download", True),
        max_samples=get_value(cfg, "data.max_test_samples", None),
    )
    images = preprocess_images(np.stack([r["image"] for r in records]), cfg.data.image_size)
    labels = [r["label"] for r in records]

    cohort = build_cohort_from_config(cfg, images, labels)
    latents = encode_cohort(model, cohort, device=device)

    n_forecast = cfg.forecast.n_forecast_visits
    forecasts = forecast_cohort(model, cohort, n_forecast_visits=n_forecast, device=device)
    summary = summarize_forecasts(forecasts)

    tables_dir = run_dir / "tables"
    with open(tables_dir / "forecast_summary.json", "w") as f:
        json.dump(summary, f, indent=2)

    trajectories_df = trajectories_to_frame(cohort, latents)
    forecasts_df = forecasts_to_frame(forecasts)
    out_dirs = [tables_dir]
    if get_value(cfg, "forecast.export_tables", True):
        out_dirs.append(Path(cfg.paths.raw_dir))
    for out_dir in out_dirs:
        out_dir.mkdir(parents=True, exist_ok=True)
        trajectories_df.to_csv(out_dir / "latent_trajectories.csv", index=False)
        forecasts_df.to_csv(out_dir / "forecasts.csv", index=False)
        logger.info(f"Exported trajectory and forecast tables to {out_dir}")

    figures_dir = run_dir / "figures"
    for fc in forecasts[: get_value(cfg, "forecast.n_plot_subjects", 4)]:
        save_figure(plot_forecast(fc), f"forecast_{fc.subject_id}", figures_dir)
        save_figure(plot_latent_trajectories(fc), f"trajectory_{fc.subject_id}", figures_dir)

    all_latents = np.concatenate([latents[s.subject_id] for s in cohort], axis=0)
    visit_labels = np.concatenate([[s.label] * s.n_visits for s in cohort])
    save_figure(plot_latent_space(all_latents, labels=visit_labels), "cohort_latent_space", figures_dir)

    logger.info(
        f"Forecast image MSE {summary['image_mse_mean']:.5f} vs LOCF {summary['locf_mse_mean']:.5f} "
        f"over {summary['n_forecasts']} forecasts"
    )
    logger.info(f"Outputs written to {run_dir}")


if __name__ == "__main__":
    main()
