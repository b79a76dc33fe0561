"""Tests for weight persistence and checkpoint loading."""

from pathlib import Path

import pytest
import torch

from longvae.models import MMDVAE
from longvae.utils.checkpoint import (
    DECODER_WEIGHTS,
    ENCODER_WEIGHTS,
    load_checkpoint,
    load_model_from_checkpoint,
    load_model_weights,
    save_model_weights,
    strip_prefix,
)


def _fresh_model(seed: int) -> MMDVAE:
    torch.manual_seed(seed)
    return MMDVAE(z_dim=4, base_filters=8, dense_units=32)


class TestRawWeights:
    """Tests for save_model_weights / load_model_weights."""

    def test_save_creates_two_files(self, tiny_model, temp_dir: Path):
        raw_dir = temp_dir / "Raw"
        encoder_path, decoder_path = save_model_weights(tiny_model, raw_dir)

        assert encoder_path == raw_dir / ENCODER_WEIGHTS
        assert decoder_path == raw_dir / DECODER_WEIGHTS
        assert encoder_path.exists() and decoder_path.exists()

    def test_roundtrip_restores_outputs(self, temp_dir: Path, synthetic_images):
        source = _fresh_model(0)
        target = _fresh_model(1)
        save_model_weights(source, temp_dir)
        load_model_weights(target, temp_dir)

        source.eval()
        target.eval()
        with torch.no_grad():
            x_src, z_src = source(synthetic_images)
            x_tgt, z_tgt = target(synthetic_images)
        assert torch.allclose(z_src, z_tgt)
        assert torch.allclose(x_src, x_tgt)

    def test_missing_weights(self, tiny_model, temp_dir: Path):
        with pytest.raises(FileNotFoundError, match="Pretrained weights not found"):
            load_model_weights(tiny_model, temp_dir)

    def test_architecture_mismatch(self, tiny_model, temp_dir: Path):
        save_model_weights(tiny_model, temp_dir)
        other = MMDVAE(z_dim=8, base_filters=8, dense_units=32)
        with pytest.raises(RuntimeError):
            load_model_weights(other, temp_dir)


class TestLoadCheckpoint:
    """Tests for load_checkpoint / load_model_from_checkpoint."""

    def test_lightning_style_checkpoint(self, temp_dir: Path, synthetic_images):
        source = _fresh_model(0)
        ckpt_path = temp_dir / "model.ckpt"
        state_dict = {f"model.{k}": v for k, v in source.state_dict().items()}
        torch.save({"state_dict": state_dict, "epoch": 3}, ckpt_path)

        checkpoint = load_checkpoint(ckpt_path)
        assert checkpoint["epoch"] == 3

        target = load_model_from_checkpoint(_fresh_model(1), ckpt_path)
        for key, value in source.state_dict().items():
            assert torch.equal(value, target.state_dict()[key])

    def test_raw_state_dict(self, temp_dir: Path):
        source = _fresh_model(0)
        path = temp_dir / "model.pt"
        torch.save(source.state_dict(), path)

        checkpoint = load_checkpoint(path)
        assert checkpoint["epoch"] is None
        load_model_from_checkpoint(_fresh_model(1), path)

    def test_missing_checkpoint(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError, match="Checkpoint not found"):
            load_checkpoint(temp_dir / "missing.ckpt")

    def test_invalid_format(self, temp_dir: Path):
        path = temp_dir / "bad.pt"
        torch.save([1, 2, 3], path)
        with pytest.raises(RuntimeError, match="Invalid checkpoint format"):
            load_checkpoint(path)

    def test_strip_prefix(self):
        sd = {"model.encoder.w": 1, "other.b": 2}
        assert strip_prefix(sd) == {"encoder.w": 1, "other.b": 2}
