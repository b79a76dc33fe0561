"""LongVAE: two-stage MMD-VAE forecasting for longitudinal image data.

This package trains a small convolutional VAE regularised with maximum mean
discrepancy on resized MNIST digits (a stand-in for visual-field scans), then
forecasts each subject's future image by extrapolating a per-dimension linear
fit through the subject's latent trajectory and decoding the result.
"""

__version__ = "0.1.0"
