"""
Labeled datasets and batch selection strategies.
"""

from .dataset import LabeledData, WeightedLabeledData
from .data_loaders import (
    BatchSelector,
    FullBatchSelector,
    MiniBatchSelector,
    create_batch_selector
)

__all__ = [
    'LabeledData',
    'WeightedLabeledData',
    'BatchSelector',
    'FullBatchSelector',
    'MiniBatchSelector',
    'create_batch_selector'
]
