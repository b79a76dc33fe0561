"""Tests for run directory, split CSV and logging utilities."""

import logging

import pandas as pd
import pytest

from longvae.utils import create_run_dir, save_split_csvs, setup_logging
from longvae.utils.io import RUN_SUBDIRS


@pytest.fixture
def restore_root_handlers():
    """Put back the root logger handlers replaced by setup_logging."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


class TestRunDir:
    """Tests for create_run_dir."""

    def test_creates_subdirs(self, temp_dir):
        run_dir = create_run_dir(temp_dir, experiment_name="unit")

        assert run_dir.parent == temp_dir
        assert run_dir.name.endswith("_unit")
        for subdir in RUN_SUBDIRS:
            assert (run_dir / subdir).is_dir()


class TestSplitCsvs:
    """Tests for save_split_csvs."""

    def test_writes_ids_and_labels(self, temp_dir):
        train = [{"image": None, "label": 3, "id": 0}, {"image": None, "label": 5, "id": 2}]
        val = [{"image": None, "label": 7, "id": 1}]

        train_csv, val_csv = save_split_csvs(train, val, temp_dir)

        train_df = pd.read_csv(train_csv)
        val_df = pd.read_csv(val_csv)
        assert list(train_df.columns) == ["id", "label"]
        assert train_df["id"].tolist() == [0, 2]
        assert val_df["label"].tolist() == [7]


@pytest.mark.usefixtures("restore_root_handlers")
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_log_file(self, temp_dir):
        setup_logging(temp_dir, log_filename="unit.log")
        logging.getLogger("longvae.test").info("hello from the test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        log_file = temp_dir / "unit.log"
        assert log_file.exists()
        assert "hello from the test" in log_file.read_text()

    def test_no_duplicate_handlers(self, temp_dir):
        setup_logging(temp_dir)
        setup_logging(temp_dir)
        assert len(logging.getLogger().handlers) == 2

        setup_logging()
        assert len(logging.getLogger().handlers) == 1
