"""
Per-dimension linear extrapolation of latent trajectories.

Second stage of the two-stage technique. For a subject with visits at
times t_1 < ... < t_T encoded to z_1, ..., z_T in R^D, an independent
ordinary least-squares line is fitted per latent dimension:

    z_d(t) = a_d + b_d * t

and evaluated at a future time to obtain the forecast latent point.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from sklearn.linear_model import LinearRegression

logger = logging.getLogger(__name__)

ArrayLike = Union[np.ndarray, Sequence[float]]


@dataclass
class LinearTrajectory:
    """Fitted per-dimension lines.

    Attributes:
        slope: Slope per latent dimension [D].
        intercept: Intercept per latent dimension [D].
        times: Times used for fitting [T].
    """

    slope: np.ndarray
    intercept: np.ndarray
    times: np.ndarray

    @property
    def dim(self) -> int:
        return len(self.slope)

    def predict(self, times: ArrayLike) -> np.ndarray:
        """Evaluate every line at the given times.

        Args:
            times: Scalar or [K] times.

        Returns:
            Latent points [K, D].
        """
        t = np.atleast_1d(np.asarray(times, dtype=np.float64))
        return self.intercept[None, :] + t[:, None] * self.slope[None, :]


def fit_linear_trajectory(times: ArrayLike, latents: np.ndarray) -> LinearTrajectory:
    """Fit one OLS line per latent dimension against time.

    Args:
        times: Observation times [T].
        latents: Latent vectors [T, D].

    Returns:
        LinearTrajectory with slope/intercept per dimension.

    Raises:
        ValueError: If shapes disagree, fewer than two observations are
            given, or all times are identical (slope undefined).
    """
    t = np.asarray(times, dtype=np.float64).reshape(-1)
    z = np.asarray(latents, dtype=np.float64)

    if z.ndim != 2:
        raise ValueError(f"Expected latents [T, D], got shape {z.shape}")
    if len(t) != z.shape[0]:
        raise ValueError(f"Got {len(t)} times but {z.shape[0]} latent vectors")
    if len(t) < 2:
        raise ValueError(f"Need at least 2 observations to fit a line, got {len(t)}")
    if np.ptp(t) == 0:
        raise ValueError("All observation times are identical; slope is undefined")

    # Multi-output OLS: each column of z gets its own independent line
    reg = LinearRegression().fit(t[:, None], z)
    logger.debug(
        f"Fitted {z.shape[1]} latent lines on {len(t)} visits "
        f"(t in [{t.min():.2f}, {t.max():.2f}])"
    )

    return LinearTrajectory(
        slope=reg.coef_[:, 0].copy(),
        intercept=np.asarray(reg.intercept_, dtype=np.float64).copy(),
        times=t,
    )


def extrapolate_latents(
    times: ArrayLike,
    latents: np.ndarray,
    target_times: ArrayLike,
) -> np.ndarray:
    """Fit per-dimension lines and evaluate them at ``target_times``.

    Returns:
        Forecast latent points [K, D].
    """
    return fit_linear_trajectory(times, latents).predict(target_times)
