"""I/O utilities for experiment management.

This module provides functions for:
- Creating timestamped run directories
- Saving train/val split index CSVs
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union


logger = logging.getLogger(__name__)

RUN_SUBDIRS = ("checkpoints", "logs", "recon", "figures", "tables", "splits")


def create_run_dir(save_dir: Union[str, Path], experiment_name: str = "mmd_vae") -> Path:
    """Create a timestamped run directory.

    Creates directory structure:
        <save_dir>/<timestamp>_<experiment_name>/
            checkpoints/
            logs/
            recon/
            figures/
            tables/
            splits/

    Args:
        save_dir: Base directory for experiment runs.
        experiment_name: Name to append to timestamp.

    Returns:
        Path to created run directory.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(save_dir) / f"{timestamp}_{experiment_name}"

    for subdir in RUN_SUBDIRS:
        (run_dir / subdir).mkdir(parents=True, exist_ok=True)

    logger.info(f"Created run directory: {run_dir}")
    return run_dir


def save_split_csvs(
    train_records: List[Dict[str, Any]],
    val_records: List[Dict[str, Any]],
    run_dir: Union[str, Path],
) -> Tuple[Path, Path]:
    """Save train/val split membership to CSV files.

    Each CSV contains columns: id, label. Image arrays are not written.

    Args:
        train_records: List of training record dicts.
        val_records: List of validation record dicts.
        run_dir: Path to run directory.

    Returns:
        Tuple of (train_csv_path, val_csv_path).
    """
    splits_dir = Path(run_dir) / "splits"
    splits_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for name, records in (("train", train_records), ("val", val_records)):
        csv_path = splits_dir / f"{name}_samples.csv"
        with open(csv_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=["id", "label"])
            writer.writeheader()
            for record in records:
                writer.writerow({"id": record["id"], "label": record["label"]})
        logger.info(f"Saved {name} split ({len(records)} samples) to {csv_path}")
        paths.append(csv_path)

    return paths[0], paths[1]
