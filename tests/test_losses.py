"""Tests for the MMD-VAE loss and the MMD weight schedule."""

import pytest
import torch

from longvae.losses import compute_mmd, compute_mmd_vae_loss, get_mmd_weight_schedule


@pytest.fixture
def loss_inputs():
    torch.manual_seed(0)
    x = torch.rand(4, 1, 12, 12)
    x_hat = torch.rand(4, 1, 12, 12)
    z = torch.randn(4, 8)
    prior_z = torch.randn(32, 8)
    return x, x_hat, z, prior_z


class TestComputeMMDVAELoss:
    """Tests for compute_mmd_vae_loss."""

    def test_returns_all_components(self, loss_inputs):
        out = compute_mmd_vae_loss(*loss_inputs)
        assert set(out.keys()) == {"loss", "recon", "mmd"}
        for value in out.values():
            assert value.dim() == 0
            assert torch.isfinite(value)

    def test_total_is_weighted_sum(self, loss_inputs):
        out = compute_mmd_vae_loss(*loss_inputs, mmd_weight=2.5)
        assert torch.allclose(out["loss"], out["recon"] + 2.5 * out["mmd"])

    def test_mean_reduction(self, loss_inputs):
        x, x_hat, z, prior_z = loss_inputs
        out = compute_mmd_vae_loss(x, x_hat, z, prior_z, reduction="mean")
        assert torch.allclose(out["recon"], ((x_hat - x) ** 2).mean())

    def test_sum_reduction(self, loss_inputs):
        x, x_hat, z, prior_z = loss_inputs
        mean_out = compute_mmd_vae_loss(x, x_hat, z, prior_z, reduction="mean")
        sum_out = compute_mmd_vae_loss(x, x_hat, z, prior_z, reduction="sum")
        assert torch.allclose(sum_out["recon"], mean_out["recon"] * x.numel(), rtol=1e-5)

    def test_mmd_matches_compute_mmd(self, loss_inputs):
        x, x_hat, z, prior_z = loss_inputs
        out = compute_mmd_vae_loss(x, x_hat, z, prior_z)
        assert torch.allclose(out["mmd"], compute_mmd(prior_z, z))

    def test_zero_weight_ignores_mmd(self, loss_inputs):
        out = compute_mmd_vae_loss(*loss_inputs, mmd_weight=0.0)
        assert torch.allclose(out["loss"], out["recon"])

    def test_perfect_reconstruction(self, loss_inputs):
        x, _, z, prior_z = loss_inputs
        out = compute_mmd_vae_loss(x, x.clone(), z, prior_z)
        assert out["recon"].item() == 0.0

    def test_invalid_reduction(self, loss_inputs):
        with pytest.raises(ValueError, match="Invalid reduction"):
            compute_mmd_vae_loss(*loss_inputs, reduction="median")

    def test_shape_mismatch(self, loss_inputs):
        x, _, z, prior_z = loss_inputs
        with pytest.raises(ValueError, match="shapes differ"):
            compute_mmd_vae_loss(x, torch.rand(4, 1, 8, 8), z, prior_z)


class TestMMDWeightSchedule:
    """Tests for get_mmd_weight_schedule."""

    def test_no_warmup(self):
        assert get_mmd_weight_schedule(0, 2.0, 0) == 2.0

    def test_linear_warmup(self):
        assert get_mmd_weight_schedule(0, 1.0, 4) == 0.0
        assert get_mmd_weight_schedule(2, 1.0, 4) == pytest.approx(0.5)

    def test_constant_after_warmup(self):
        assert get_mmd_weight_schedule(4, 1.0, 4) == 1.0
        assert get_mmd_weight_schedule(10, 1.0, 4) == 1.0
