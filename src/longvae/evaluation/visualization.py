"""Visualization utilities for the MMD-VAE workflow.

Provides plotting functions for:
- Input vs. reconstruction grids
- 2-D views of the latent space
- Per-dimension latent trajectories with their fitted lines
- Subject forecast strips (observed visits, forecast, truth)
- Training curves from the Lightning CSV log

Figures are rendered with the non-interactive Agg backend and written to
disk; every plotting function returns the matplotlib Figure.

Example:
    >>> set_publication_style()
    >>> fig = plot_forecast(forecasts[0])
    >>> save_figure(fig, "forecast_S0000", run_dir / "figures")
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402
from sklearn.decomposition import PCA  # noqa: E402

from ..inference.forecast import SubjectForecast  # noqa: E402

logger = logging.getLogger(__name__)


def set_publication_style(
    font_size: int = 10,
    axes_label_size: int = 11,
    axes_title_size: int = 12,
    figure_dpi: int = 120,
    save_dpi: int = 200,
) -> None:
    """Configure matplotlib font sizes and DPI for report figures."""
    plt.rcParams.update(
        {
            "font.size": font_size,
            "axes.labelsize": axes_label_size,
            "axes.titlesize": axes_title_size,
            "figure.dpi": figure_dpi,
            "savefig.dpi": save_dpi,
            "savefig.bbox": "tight",
            "savefig.pad_inches": 0.1,
        }
    )


def save_figure(
    fig: Figure,
    name: str,
    output_dir: Union[str, Path],
    formats: Sequence[str] = ("png",),
    close: bool = True,
) -> List[Path]:
    """Save figure in multiple formats.

    Args:
        fig: Matplotlib figure to save.
        name: Base filename (without extension).
        output_dir: Directory to save figures.
        formats: File formats to save (e.g., ["pdf", "png"]).
        close: Whether to close the figure after saving.

    Returns:
        List of saved file paths.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved_paths = []
    for fmt in formats:
        path = output_dir / f"{name}.{fmt}"
        fig.savefig(path)
        logger.info(f"Saved figure to {path}")
        saved_paths.append(path)

    if close:
        plt.close(fig)

    return saved_paths


def _show(ax, image: np.ndarray, title: Optional[str] = None, cmap: str = "gray", **kwargs):
    # image: [C, H, W] or [H, W]; single channel is squeezed
    img = np.asarray(image)
    if img.ndim == 3:
        img = img[0]
    im = ax.imshow(img, cmap=cmap, **kwargs)
    ax.set_xticks([])
    ax.set_yticks([])
    if title:
        ax.set_title(title, fontsize=9)
    return im


def plot_reconstructions(
    x: np.ndarray,
    x_hat: np.ndarray,
    n_samples: int = 8,
    title: Optional[str] = None,
) -> Figure:
    """Grid of inputs (row 1), reconstructions (row 2) and |difference| (row 3).

    Args:
        x: Inputs [N, C, H, W].
        x_hat: Reconstructions [N, C, H, W].
        n_samples: Number of columns.
        title: Optional figure title.
    """
    n = min(n_samples, len(x))
    if n == 0:
        raise ValueError("No samples to plot")

    fig, axes = plt.subplots(3, n, figsize=(1.4 * n, 4.4), squeeze=False)
    for i in range(n):
        _show(axes[0, i], x[i], vmin=0, vmax=1)
        _show(axes[1, i], x_hat[i], vmin=0, vmax=1)
        _show(axes[2, i], np.abs(x_hat[i] - x[i]), cmap="hot", vmin=0, vmax=1)

    axes[0, 0].set_ylabel("Input")
    axes[1, 0].set_ylabel("Recon")
    axes[2, 0].set_ylabel("|Diff|")
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    return fig


def plot_latent_space(
    latents: np.ndarray,
    labels: Optional[Sequence[int]] = None,
    prior_samples: Optional[np.ndarray] = None,
) -> Figure:
    """Scatter the latent codes in 2-D.

    Uses the first two dimensions when z_dim == 2, otherwise a PCA fitted on
    the codes (prior samples, if given, are projected with the same PCA).

    Args:
        latents: Latent codes [N, D].
        labels: Optional digit labels [N] for coloring.
        prior_samples: Optional prior draws [M, D] shown in grey.
    """
    latents = np.asarray(latents)
    if latents.ndim != 2 or latents.shape[1] < 2:
        raise ValueError(f"Expected latents [N, D>=2], got shape {latents.shape}")

    if latents.shape[1] == 2:
        coords = latents
        project = None
        xlabel, ylabel = "z_0", "z_1"
    else:
        pca = PCA(n_components=2).fit(latents)
        coords = pca.transform(latents)
        project = pca.transform
        ratio = pca.explained_variance_ratio_
        xlabel, ylabel = f"PC1 ({ratio[0]:.0%})", f"PC2 ({ratio[1]:.0%})"

    fig, ax = plt.subplots(figsize=(5.5, 5))
    if prior_samples is not None:
        prior_coords = project(prior_samples) if project is not None else np.asarray(prior_samples)
        ax.scatter(prior_coords[:, 0], prior_coords[:, 1], s=4, c="lightgrey", label="prior")

    if labels is not None:
        sc = ax.scatter(coords[:, 0], coords[:, 1], c=np.asarray(labels), cmap="tab10", s=6, vmin=-0.5, vmax=9.5)
        fig.colorbar(sc, ax=ax, ticks=range(10), label="digit")
    else:
        ax.scatter(coords[:, 0], coords[:, 1], s=6)

    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.set_title("Latent space")
    if prior_samples is not None:
        ax.legend(loc="upper right", markerscale=3)
    fig.tight_layout()
    return fig


def plot_latent_trajectories(
    forecast: SubjectForecast,
    dims: Optional[Sequence[int]] = None,
    max_dims: int = 4,
) -> Figure:
    """Plot observed latent values, fitted lines and forecasts per dimension.

    Args:
        forecast: SubjectForecast.
        dims: Latent dimensions to show. Defaults to those with the largest
            absolute slope.
        max_dims: Number of dimensions when ``dims`` is None.
    """
    slope = forecast.trajectory.slope
    if dims is None:
        dims = list(np.argsort(-np.abs(slope))[:max_dims])

    t_all = np.concatenate([forecast.observed_times, forecast.target_times])
    t_line = np.linspace(t_all.min(), t_all.max(), 50)
    line = forecast.trajectory.predict(t_line)

    fig, axes = plt.subplots(1, len(dims), figsize=(3.2 * len(dims), 3), squeeze=False)
    for ax, d in zip(axes[0], dims):
        ax.plot(t_line, line[:, d], "k--", lw=1, label="OLS fit")
        ax.scatter(forecast.observed_times, forecast.observed_latents[:, d], c="tab:blue", label="observed")
        ax.scatter(forecast.target_times, forecast.target_latents[:, d], c="tab:green", marker="s", label="truth")
        ax.scatter(forecast.target_times, forecast.forecast_latents[:, d], c="tab:red", marker="x", label="forecast")
        ax.set_title(f"z_{d} (slope {slope[d]:+.2f})")
        ax.set_xlabel("time")
    axes[0, 0].legend(fontsize=7)
    fig.suptitle(f"Subject {forecast.subject_id} latent trajectory")
    fig.tight_layout()
    return fig


def plot_forecast(forecast: SubjectForecast) -> Figure:
    """Strip of observed visits, then forecast and truth for each target visit."""
    n_obs = len(forecast.observed_times)
    n_target = len(forecast.target_times)
    n_cols = n_obs + n_target

    fig, axes = plt.subplots(2, n_cols, figsize=(1.5 * n_cols, 3.4), squeeze=False)
    for i in range(n_obs):
        _show(axes[0, i], forecast.observed_images[i], title=f"t={forecast.observed_times[i]:.2f}", vmin=0, vmax=1)
        axes[1, i].axis("off")

    for k in range(n_target):
        col = n_obs + k
        t = forecast.target_times[k]
        _show(axes[0, col], forecast.forecast_images[k], title=f"forecast t={t:.2f}", vmin=0, vmax=1)
        _show(axes[1, col], forecast.target_images[k], title=f"truth (mse {forecast.image_mse[k]:.4f})", vmin=0, vmax=1)

    fig.suptitle(
        f"Subject {forecast.subject_id} (digit {forecast.label}, rate {forecast.rate:.2f}/yr)"
    )
    fig.tight_layout()
    return fig


def load_metrics_csv(metrics_csv: Union[str, Path]) -> pd.DataFrame:
    """Load a Lightning CSVLogger ``metrics.csv`` as one row per epoch."""
    metrics_csv = Path(metrics_csv)
    if not metrics_csv.exists():
        raise FileNotFoundError(f"Metrics file not found: {metrics_csv}")

    df = pd.read_csv(metrics_csv)
    if "epoch" not in df.columns:
        raise ValueError(f"No 'epoch' column in {metrics_csv}")
    # Train and val metrics land on separate rows of the same epoch
    return df.drop(columns=["step"], errors="ignore").groupby("epoch").mean()


def plot_training_curves(
    metrics: pd.DataFrame,
    keys: Sequence[str] = ("loss", "recon", "mmd"),
) -> Figure:
    """Plot train/val curves for each loss component.

    Args:
        metrics: Per-epoch metrics as returned by :func:`load_metrics_csv`.
        keys: Loss components to plot.
    """
    keys = [k for k in keys if f"train/{k}" in metrics.columns or f"val/{k}" in metrics.columns]
    if not keys:
        raise ValueError(f"None of the requested metrics found in columns {list(metrics.columns)}")

    fig, axes = plt.subplots(1, len(keys), figsize=(4 * len(keys), 3.2), squeeze=False)
    for ax, key in zip(axes[0], keys):
        for split, style in (("train", "-"), ("val", "--")):
            col = f"{split}/{key}"
            if col in metrics.columns:
                series = metrics[col].dropna()
                ax.plot(series.index, series.values, style, label=split)
        ax.set_title(key)
        ax.set_xlabel("epoch")
        ax.legend()
    fig.tight_layout()
    return fig
