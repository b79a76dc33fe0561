"""Data loading, preprocessing and longitudinal simulation module."""

from .transforms import get_transforms
from .mnist import (
    load_mnist_records,
    create_train_val_split,
    get_dataloaders,
    get_test_dataloader,
    preprocess_images,
)
from .longitudinal import (
    SubjectTrajectory,
    make_visit_times,
    simulate_progression,
    build_longitudinal_cohort,
    build_cohort_from_config,
)

__all__ = [
    "get_transforms",
    "load_mnist_records",
    "create_train_val_split",
    "get_dataloaders",
    "get_test_dataloader",
    "preprocess_images",
    "SubjectTrajectory",
    "make_visit_times",
    "simulate_progression",
    "build_longitudinal_cohort",
    "build_cohort_from_config",
]
