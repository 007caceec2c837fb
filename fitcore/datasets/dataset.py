"""
dataset.py
Labeled datasets with a fixed batch partition.
Inputs and labels are held as tensors with a leading example dimension; the batch
partition is computed once and never changes for the lifetime of the dataset.
"""

import torch
from torch.utils.data import Dataset
from typing import Tuple, List, Optional, Any
import logging

from fitcore.utils.config import DEFAULT_BATCH_SIZE, CONTINUOUS, LABEL

logger = logging.getLogger(__name__)


class LabeledData(Dataset):
    """
    Ordered sequence of (input, label) pairs partitioned into contiguous batches.

    Key properties:
    - Label kind is inferred from the label dtype: integer labels are class
      indices ('label'), floating labels are real vectors ('continuous')
    - Continuous labels and inputs are stored as matrices (N, d); a 1-D tensor
      is read as N examples of width 1
    - All batches have `batch_size` examples except possibly the last
    """

    def __init__(self,
                 inputs: Any,
                 labels: Any,
                 batch_size: int = DEFAULT_BATCH_SIZE):
        inputs = torch.as_tensor(inputs)
        labels = torch.as_tensor(labels)

        if inputs.dim() == 0 or labels.dim() == 0:
            raise ValueError("Inputs and labels need a leading example dimension")
        if inputs.shape[0] != labels.shape[0]:
            raise ValueError(
                f"Number of inputs ({inputs.shape[0]}) does not match "
                f"number of labels ({labels.shape[0]})"
            )
        if batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")

        if inputs.dim() == 1:
            inputs = inputs.unsqueeze(1)
        if torch.is_floating_point(labels):
            if labels.dim() == 1:
                labels = labels.unsqueeze(1)
        elif labels.dim() != 1:
            raise ValueError("Class labels must be a 1-D tensor of indices")

        self.inputs = inputs
        self.labels = labels
        self.batch_size = batch_size
        self._batch_bounds = self._create_batch_partition()

        logger.debug(
            f"LabeledData: {len(self)} examples, {self.number_of_batches()} batches, "
            f"label kind '{self.label_kind}'"
        )

    def _create_batch_partition(self) -> List[Tuple[int, int]]:
        """Split [0, N) into contiguous (start, stop) ranges"""
        num_examples = self.inputs.shape[0]
        return [
            (start, min(start + self.batch_size, num_examples))
            for start in range(0, num_examples, self.batch_size)
        ]

    def __len__(self) -> int:
        return self.inputs.shape[0]

    def __getitem__(self, idx: int):
        return self.inputs[idx], self.labels[idx]

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(self.inputs.shape[1:])

    @property
    def label_kind(self) -> str:
        return CONTINUOUS if torch.is_floating_point(self.labels) else LABEL

    def number_of_batches(self) -> int:
        return len(self._batch_bounds)

    def batch_sizes(self) -> List[int]:
        return [stop - start for start, stop in self._batch_bounds]

    def batch_slice(self, index: int) -> slice:
        start, stop = self._batch_bounds[index]
        return slice(start, stop)

    def batch(self, index: int):
        """Return (inputs, labels) of batch `index`"""
        rows = self.batch_slice(index)
        return self.inputs[rows], self.labels[rows]

    def shuffled(self, generator: Optional[torch.Generator] = None) -> 'LabeledData':
        """Return a copy with permuted examples and a fresh batch partition"""
        permutation = torch.randperm(len(self), generator=generator)
        return LabeledData(self.inputs[permutation], self.labels[permutation], self.batch_size)


class WeightedLabeledData(LabeledData):
    """
    LabeledData with one non-negative weight per example.
    Weights follow the same batch partition as inputs and labels.
    """

    def __init__(self,
                 inputs: Any,
                 labels: Any,
                 weights: Any,
                 batch_size: int = DEFAULT_BATCH_SIZE):
        super(WeightedLabeledData, self).__init__(inputs, labels, batch_size)

        weights = torch.as_tensor(weights)
        if not torch.is_floating_point(weights):
            weights = weights.to(torch.get_default_dtype())
        if weights.dim() != 1 or weights.shape[0] != len(self):
            raise ValueError(
                f"Expected {len(self)} weights in a 1-D tensor, got shape {tuple(weights.shape)}"
            )
        if not torch.isfinite(weights).all() or (weights < 0).any():
            raise ValueError("Example weights must be finite and non-negative")

        self.weights = weights

    @classmethod
    def from_data(cls, data: LabeledData, weights: Any) -> 'WeightedLabeledData':
        return cls(data.inputs, data.labels, weights, data.batch_size)

    def __getitem__(self, idx: int):
        return self.inputs[idx], self.labels[idx], self.weights[idx]

    def batch(self, index: int):
        """Return (inputs, labels, weights) of batch `index`"""
        rows = self.batch_slice(index)
        return self.inputs[rows], self.labels[rows], self.weights[rows]

    def sum_of_weights(self) -> float:
        return self.weights.sum().item()

    def shuffled(self, generator: Optional[torch.Generator] = None) -> 'WeightedLabeledData':
        permutation = torch.randperm(len(self), generator=generator)
        return WeightedLabeledData(
            self.inputs[permutation],
            self.labels[permutation],
            self.weights[permutation],
            self.batch_size
        )
