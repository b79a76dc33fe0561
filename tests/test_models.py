"""Unit tests for MMD-VAE shape verification.

This module tests:
1. Encoder output shape: z [B, z_dim]
2. Decoder output shape matches the input image
3. Encoder/decoder layers are shared with the end-to-end model
4. Invalid image sizes and layer names are rejected
"""

import pytest
import torch
from omegaconf import OmegaConf

from longvae.models import Decoder2D, Encoder2D, MMDVAE, create_mmd_vae
from longvae.models.components import get_activation, get_norm
from longvae.models.encoder import check_image_size


class TestMMDVAEShapes:
    """Test MMD-VAE model shapes."""

    @pytest.fixture
    def model(self):
        return MMDVAE(input_channels=1, image_size=(12, 12), z_dim=16)

    @pytest.fixture
    def dummy_batch(self):
        return torch.rand(3, 1, 12, 12)

    def test_encoder_output_shape(self, model, dummy_batch):
        z = model.encode(dummy_batch)
        assert z.shape == (3, 16), f"Expected z shape (3, 16), got {z.shape}"

    def test_forward_shapes(self, model, dummy_batch):
        x_hat, z = model(dummy_batch)
        assert x_hat.shape == dummy_batch.shape
        assert z.shape == (3, 16)

    def test_output_in_unit_interval(self, model, dummy_batch):
        x_hat, _ = model(dummy_batch)
        assert (x_hat >= 0).all() and (x_hat <= 1).all()

    def test_encoder_deterministic(self, model, dummy_batch):
        model.eval()
        with torch.no_grad():
            assert torch.equal(model.encode(dummy_batch), model.encode(dummy_batch))

    def test_decode_shape(self, model):
        assert model.decode(torch.randn(5, 16)).shape == (5, 1, 12, 12)

    def test_gradient_flow(self, model, dummy_batch):
        x_hat, z = model(dummy_batch)
        (x_hat.sum() + z.sum()).backward()
        for name, param in model.named_parameters():
            assert param.grad is not None, f"No gradient for {name}"


class TestSharedLayers:
    """The stand-alone encoder/decoder are the trained model's layers."""

    def test_encoder_is_submodule(self, tiny_model):
        assert any(m is tiny_model.encoder for m in tiny_model.children())
        assert any(m is tiny_model.decoder for m in tiny_model.children())

    def test_forward_equals_decoder_of_encoder(self, tiny_model, synthetic_images):
        tiny_model.eval()
        with torch.no_grad():
            x_hat, z = tiny_model(synthetic_images)
            assert torch.allclose(z, tiny_model.encoder(synthetic_images))
            assert torch.allclose(x_hat, tiny_model.decoder(z))

    def test_training_updates_encoder(self, tiny_model, synthetic_images):
        """An optimizer step on the full model changes the encoder's weights."""
        before = tiny_model.encoder.fc_z.weight.detach().clone()
        optimizer = torch.optim.SGD(tiny_model.parameters(), lr=0.1)
        x_hat, _ = tiny_model(synthetic_images)
        ((x_hat - synthetic_images) ** 2).mean().backward()
        optimizer.step()
        assert not torch.equal(before, tiny_model.encoder.fc_z.weight)


class TestArchitectureOptions:
    """Tests for configurable architecture options."""

    @pytest.mark.parametrize("num_stages,image_size", [(1, (12, 12)), (2, (16, 8)), (3, (16, 16))])
    def test_stage_and_size_combinations(self, num_stages, image_size):
        model = MMDVAE(image_size=image_size, z_dim=4, base_filters=8, num_stages=num_stages, dense_units=16)
        x = torch.rand(2, 1, *image_size)
        x_hat, z = model(x)
        assert x_hat.shape == x.shape
        assert z.shape == (2, 4)

    @pytest.mark.parametrize("norm_type", ["group", "batch", "instance", "none"])
    def test_norm_types(self, norm_type):
        model = MMDVAE(z_dim=4, base_filters=8, dense_units=16, norm_type=norm_type, num_groups=4)
        x_hat, _ = model(torch.rand(2, 1, 12, 12))
        assert x_hat.shape == (2, 1, 12, 12)

    def test_invalid_image_size(self):
        with pytest.raises(ValueError, match="divisible"):
            Encoder2D(image_size=(10, 10), num_stages=2)

    def test_invalid_image_size_decoder(self):
        with pytest.raises(ValueError, match="divisible"):
            Decoder2D(image_size=(12, 14), num_stages=2)

    def test_check_image_size(self):
        assert check_image_size((12, 12), 2) == (3, 3)
        with pytest.raises(ValueError, match="2 elements"):
            check_image_size((12, 12, 12), 2)

    def test_unknown_activation(self):
        with pytest.raises(ValueError, match="Unknown activation"):
            get_activation("tanhshrink")

    def test_unknown_norm(self):
        with pytest.raises(ValueError, match="Unknown norm"):
            get_norm("layer", 8)


class TestModelFactory:
    """Tests for create_mmd_vae."""

    def test_create_from_config(self, sample_config_dict):
        cfg = OmegaConf.create(sample_config_dict)
        model = create_mmd_vae(cfg)

        assert isinstance(model, MMDVAE)
        assert model.z_dim == 4
        assert model.image_size == (12, 12)

    def test_unknown_variant(self, sample_config_dict):
        sample_config_dict["model"]["variant"] = "beta_vae"
        cfg = OmegaConf.create(sample_config_dict)
        with pytest.raises(ValueError, match="Unknown model variant"):
            create_mmd_vae(cfg)
