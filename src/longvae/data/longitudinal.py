"""
Synthetic longitudinal cohort built from preprocessed MNIST digits.

Each subject is one digit whose intensity decays linearly with time,
mimicking a visual field that loses sensitivity as disease progresses:

    image(t) = clip(image(0) * (1 - rate * t) + noise, 0, 1)

Visit schedules are irregular: baseline at t=0, then visits every
``visit_interval`` years with uniform jitter.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
import torch
from omegaconf import DictConfig

logger = logging.getLogger(__name__)


@dataclass
class SubjectTrajectory:
    """Sequence of visits for one subject.

    Attributes:
        subject_id: Identifier, e.g. "S0003".
        label: Digit class of the baseline image.
        rate: Fractional intensity loss per unit time.
        times: Visit times [T], strictly increasing, times[0] == 0.
        images: Visit images [T, C, H, W] in [0, 1].
    """

    subject_id: str
    label: int
    rate: float
    times: np.ndarray
    images: np.ndarray

    def __post_init__(self):
        if len(self.times) != len(self.images):
            raise ValueError(
                f"Subject {self.subject_id}: {len(self.times)} times but "
                f"{len(self.images)} images"
            )
        if np.any(np.diff(self.times) <= 0):
            raise ValueError(f"Subject {self.subject_id}: visit times must be strictly increasing")

    @property
    def n_visits(self) -> int:
        return len(self.times)

    def split(self, n_forecast_visits: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Split visits into observed and held-out future visits.

        Returns:
            (observed_times, observed_images, target_times, target_images)
        """
        if n_forecast_visits < 1:
            raise ValueError(f"n_forecast_visits must be >= 1, got {n_forecast_visits}")
        n_observed = self.n_visits - n_forecast_visits
        if n_observed < 2:
            raise ValueError(
                f"Subject {self.subject_id}: need at least 2 observed visits, "
                f"got {n_observed} ({self.n_visits} visits, {n_forecast_visits} held out)"
            )
        return (
            self.times[:n_observed],
            self.images[:n_observed],
            self.times[n_observed:],
            self.images[n_observed:],
        )


def make_visit_times(
    n_visits: int,
    interval: float,
    jitter: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Generate an irregular visit schedule.

    Args:
        n_visits: Number of visits (including baseline).
        interval: Nominal spacing between visits.
        jitter: Maximum absolute deviation from the nominal schedule.
            Must be smaller than interval / 2 so visits stay ordered.
        rng: NumPy random generator.

    Returns:
        Visit times [n_visits], starting at 0.
    """
    if n_visits < 1:
        raise ValueError(f"n_visits must be >= 1, got {n_visits}")
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if not 0 <= jitter < interval / 2:
        raise ValueError(f"jitter must be in [0, interval/2), got {jitter}")

    times = np.arange(n_visits, dtype=np.float64) * interval
    offsets = rng.uniform(-jitter, jitter, size=n_visits)
    offsets[0] = 0.0
    return times + offsets


def simulate_progression(
    image: np.ndarray,
    times: np.ndarray,
    rate: float,
    noise_std: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Render a baseline image at each visit time.

    Args:
        image: Baseline image [C, H, W] in [0, 1].
        times: Visit times [T].
        rate: Fractional intensity loss per unit time.
        noise_std: Std of additive Gaussian measurement noise.
        rng: NumPy random generator.

    Returns:
        Visit images [T, C, H, W], float32 in [0, 1].
    """
    scale = np.clip(1.0 - rate * np.asarray(times, dtype=np.float64), 0.0, 1.0)
    sequence = image[None].astype(np.float64) * scale[:, None, None, None]
    if noise_std > 0:
        sequence = sequence + rng.normal(0.0, noise_std, size=sequence.shape)
    return np.clip(sequence, 0.0, 1.0).astype(np.float32)


def build_longitudinal_cohort(
    images: Union[np.ndarray, torch.Tensor],
    labels: Sequence[int],
    n_subjects: int,
    n_visits: int = 6,
    visit_interval: float = 0.5,
    visit_jitter: float = 0.1,
    rate_range: Tuple[float, float] = (0.05, 0.25),
    noise_std: float = 0.02,
    seed: int = 7,
) -> List[SubjectTrajectory]:
    """Simulate a cohort of subjects from preprocessed baseline images.

    Args:
        images: Preprocessed images [N, C, H, W] in [0, 1].
        labels: Digit label per image [N].
        n_subjects: Number of subjects (distinct baseline images).
        n_visits: Visits per subject; at least 3 so that two observed visits
            and one future visit exist.
        visit_interval: Nominal time between visits.
        visit_jitter: Maximum deviation from the nominal schedule.
        rate_range: (low, high) of the uniform per-subject progression rate.
        noise_std: Measurement noise std.
        seed: Seed for subject selection, schedules, rates and noise.

    Returns:
        List of SubjectTrajectory.
    """
    if isinstance(images, torch.Tensor):
        images = images.detach().cpu().numpy()
    images = np.asarray(images)
    labels = np.asarray(labels)

    if images.ndim != 4:
        raise ValueError(f"Expected images [N, C, H, W], got shape {images.shape}")
    if len(labels) != len(images):
        raise ValueError(f"Got {len(images)} images but {len(labels)} labels")
    if n_visits < 3:
        raise ValueError(f"n_visits must be >= 3, got {n_visits}")
    if not 0 < n_subjects <= len(images):
        raise ValueError(
            f"n_subjects must be in [1, {len(images)}], got {n_subjects}"
        )
    low, high = rate_range
    if low < 0 or high < low:
        raise ValueError(f"Invalid rate_range: {list(rate_range)}")

    rng = np.random.default_rng(seed)
    chosen = rng.choice(len(images), size=n_subjects, replace=False)

    cohort = []
    for i, idx in enumerate(chosen):
        times = make_visit_times(n_visits, visit_interval, visit_jitter, rng)
        rate = float(rng.uniform(low, high))
        visits = simulate_progression(images[idx], times, rate, noise_std, rng)
        cohort.append(
            SubjectTrajectory(
                subject_id=f"S{i:04d}",
                label=int(labels[idx]),
                rate=rate,
                times=times,
                images=visits,
            )
        )

    logger.info(
        f"Simulated {n_subjects} subjects x {n_visits} visits "
        f"(rate in [{low}, {high}], noise_std={noise_std})"
    )
    return cohort


def build_cohort_from_config(
    cfg: DictConfig,
    images: Union[np.ndarray, torch.Tensor],
    labels: Sequence[int],
) -> List[SubjectTrajectory]:
    """Simulate a cohort using the ``longitudinal`` config section."""
    lcfg = cfg.longitudinal
    return build_longitudinal_cohort(
        images,
        labels,
        n_subjects=lcfg.n_subjects,
        n_visits=lcfg.n_visits,
        visit_interval=lcfg.get("visit_interval", 0.5),
        visit_jitter=lcfg.get("visit_jitter", 0.1),
        rate_range=tuple(lcfg.get("rate_range", [0.05, 0.25])),
        noise_std=lcfg.get("noise_std", 0.02),
        seed=lcfg.get("seed", 7),
    )
