"""Logging utilities.

This module provides functions for configuring Python's logging system
to output to both console and file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    run_dir: Optional[Union[str, Path]] = None,
    log_filename: str = "train.log",
    level: int = logging.INFO,
) -> logging.Logger:
    """Setup logging to console and optionally to file.

    Args:
        run_dir: Path to run directory. If provided, logs will also be
                 written to <run_dir>/<log_filename>.
        log_filename: Name of log file within run_dir.
        level: Logging level (default: INFO).

    Returns:
        Root logger instance.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if run_dir is not None:
        run_path = Path(run_dir)
        run_path.mkdir(parents=True, exist_ok=True)
        log_file = run_path / log_filename

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to {log_file}")

    return root_logger
