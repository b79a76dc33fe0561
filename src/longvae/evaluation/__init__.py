"""Evaluation: held-out metrics and figures."""

from .metrics import compute_reconstruction_error, compute_aggregate_mmd, summarize_forecasts
from .visualization import (
    set_publication_style,
    save_figure,
    plot_reconstructions,
    plot_latent_space,
    plot_latent_trajectories,
    plot_forecast,
    load_metrics_csv,
    plot_training_curves,
)

__all__ = [
    "compute_reconstruction_error",
    "compute_aggregate_mmd",
    "summarize_forecasts",
    "set_publication_style",
    "save_figure",
    "plot_reconstructions",
    "plot_latent_space",
    "plot_latent_trajectories",
    "plot_forecast",
    "load_metrics_csv",
    "plot_training_curves",
]
