"""Tests for MNIST preprocessing, splits and data loaders (no download)."""

import numpy as np
import pytest
import torch
from omegaconf import OmegaConf

from longvae.data import (
    create_train_val_split,
    get_dataloaders,
    get_transforms,
    preprocess_images,
)


class TestTransforms:
    """Tests for get_transforms / preprocess_images."""

    def test_output_shape_and_range(self, raw_digits):
        sample = get_transforms((12, 12))({"image": raw_digits[0]})
        image = sample["image"]

        assert isinstance(image, torch.Tensor)
        assert image.shape == (1, 12, 12)
        assert image.dtype == torch.float32
        assert image.min() >= 0.0 and image.max() <= 1.0

    def test_blank_and_full_images(self):
        transform = get_transforms((12, 12))
        blank = transform({"image": np.zeros((28, 28), dtype=np.uint8)})["image"]
        full = transform({"image": np.full((28, 28), 255, dtype=np.uint8)})["image"]

        assert torch.allclose(blank, torch.zeros(1, 12, 12))
        assert torch.allclose(full, torch.ones(1, 12, 12), atol=1e-5)

    def test_custom_size(self, raw_digits):
        image = get_transforms((16, 8))({"image": raw_digits[0]})["image"]
        assert image.shape == (1, 16, 8)

    def test_preprocess_images(self, raw_digits):
        images = preprocess_images(raw_digits, (12, 12))
        assert images.shape == (6, 1, 12, 12)
        assert images.min() >= 0.0 and images.max() <= 1.0

    def test_preprocess_rejects_wrong_rank(self):
        with pytest.raises(ValueError, match="Expected images"):
            preprocess_images(np.zeros((28, 28), dtype=np.uint8))


class TestSplitAndLoaders:
    """Tests for create_train_val_split / get_dataloaders."""

    @pytest.fixture
    def records(self, raw_digits):
        return [{"image": raw_digits[i % 6], "label": i % 10, "id": i} for i in range(20)]

    def test_split_sizes_and_disjoint(self, records):
        train, val = create_train_val_split(records, val_split=0.25, seed=0)
        assert len(train) == 15 and len(val) == 5
        assert not {r["id"] for r in train} & {r["id"] for r in val}

    def test_split_deterministic(self, records):
        a = create_train_val_split(records, val_split=0.25, seed=3)
        b = create_train_val_split(records, val_split=0.25, seed=3)
        assert [r["id"] for r in a[1]] == [r["id"] for r in b[1]]

    def test_split_invalid_fraction(self, records):
        with pytest.raises(ValueError, match="val_split"):
            create_train_val_split(records, val_split=1.0, seed=0)

    def test_split_too_few_records(self, records):
        with pytest.raises(ValueError, match="at least 2"):
            create_train_val_split(records[:1], val_split=0.5, seed=0)

    def test_dataloaders_yield_dict_batches(self, records, sample_config_dict):
        cfg = OmegaConf.create(sample_config_dict)
        train, val = create_train_val_split(records, val_split=0.25, seed=0)
        train_loader, val_loader = get_dataloaders(cfg, train, val)

        batch = next(iter(train_loader))
        assert batch["image"].shape == (8, 1, 12, 12)
        assert batch["label"].shape == (8,)
        assert len(val_loader.dataset) == 5
