"""Inference: encoding, decoding and two-stage forecasting."""

from .encode import encode_images, decode_latents, encode_cohort
from .forecast import (
    SubjectForecast,
    forecast_subject,
    forecast_cohort,
    trajectories_to_frame,
    forecasts_to_frame,
)

__all__ = [
    "encode_images",
    "decode_latents",
    "encode_cohort",
    "SubjectForecast",
    "forecast_subject",
    "forecast_cohort",
    "trajectories_to_frame",
    "forecasts_to_frame",
]
