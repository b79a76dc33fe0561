"""Latent trajectory modelling (second stage)."""

from .linear import LinearTrajectory, fit_linear_trajectory, extrapolate_latents

__all__ = ["LinearTrajectory", "fit_linear_trajectory", "extrapolate_latents"]
