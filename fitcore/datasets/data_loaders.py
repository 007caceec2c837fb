"""
data_loaders.py
Batch selection strategies used by objective functions.
A selector decides which batches of a LabeledData partition are evaluated on one call.
"""

import torch
from typing import List, Optional
import logging

from fitcore.datasets.dataset import LabeledData

logger = logging.getLogger(__name__)


class BatchSelector:
    """Supplies the batch indices evaluated by one objective-function call"""

    def __init__(self, dataset: LabeledData):
        self.dataset = dataset
        self.batch_sizes = dataset.batch_sizes()

    def select(self) -> List[int]:
        raise NotImplementedError

    def set_generator(self, generator: Optional[torch.Generator]):
        """Bind a random source. Deterministic selectors ignore it."""

    def example_count(self, indices: List[int]) -> int:
        """Number of examples covered by `indices`, the error normalization count"""
        return sum(self.batch_sizes[i] for i in indices)


class FullBatchSelector(BatchSelector):
    """Evaluates every batch of the dataset, in partition order"""

    def select(self) -> List[int]:
        return list(range(len(self.batch_sizes)))


class MiniBatchSelector(BatchSelector):
    """
    Draws one batch uniformly at random on every call.

    The error of a draw is the mean loss over the drawn batch. When all batches
    have the same size its expectation is the full-batch error.
    """

    def __init__(self, dataset: LabeledData):
        super(MiniBatchSelector, self).__init__(dataset)
        self.generator = None

    def set_generator(self, generator: Optional[torch.Generator]):
        self.generator = generator if generator is not None else torch.default_generator

    def select(self) -> List[int]:
        if self.generator is None:
            raise RuntimeError("Mini-batch sampling needs a random source, call init() first")
        index = torch.randint(len(self.batch_sizes), (1,), generator=self.generator).item()
        return [index]


def create_batch_selector(dataset: LabeledData, use_mini_batches: bool = False) -> BatchSelector:
    """
    Create the batch selector for a dataset.

    Args:
        dataset: Dataset whose batch partition is sampled
        use_mini_batches: Draw one random batch per call instead of the whole dataset

    Returns:
        BatchSelector: Selection strategy
    """
    if use_mini_batches:
        logger.debug(f"Mini-batch selection over {dataset.number_of_batches()} batches")
        return MiniBatchSelector(dataset)
    return FullBatchSelector(dataset)
