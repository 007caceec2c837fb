"""
Base loss class and the squared loss for regression.

Losses work on whole batches: `per_example` returns one loss value per example,
`evaluate` their sum and `evaluate_derivative` additionally the gradient of each
example's loss with respect to the model output.
"""

import torch
import torch.nn as nn
from collections import deque
from typing import Dict, Tuple
from abc import ABC, abstractmethod

from fitcore.utils.config import CONTINUOUS, LOSS_HISTORY_SIZE


class AbstractLoss(ABC, nn.Module):
    """
    Abstract base class for all loss functions with common functionality.

    Class attributes describe what the loss consumes:
    - label_kind: kind of dataset labels (CONTINUOUS or LABEL)
    - output_kinds: model output kinds the loss accepts
    - has_first_derivative: whether evaluate_derivative is available
    """

    label_kind = CONTINUOUS
    output_kinds: Tuple[str, ...] = (CONTINUOUS,)
    has_first_derivative = True

    def __init__(self, reduction: str = 'mean'):
        super(AbstractLoss, self).__init__()
        self.reduction = reduction
        self.loss_history = deque(maxlen=LOSS_HISTORY_SIZE)

    @abstractmethod
    def per_example(self, labels: torch.Tensor, outputs: torch.Tensor) -> torch.Tensor:
        """Loss of every example in the batch, shape (N,)"""

    def evaluate(self, labels: torch.Tensor, outputs: torch.Tensor) -> torch.Tensor:
        """Summed loss of the batch"""
        return self.per_example(labels, outputs).sum()

    def evaluate_derivative(self, labels: torch.Tensor,
                            outputs: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Summed loss and its gradient with respect to the outputs.

        The default differentiates per_example with autograd; subclasses with a
        closed form override it.

        Returns:
            tuple: (summed loss, output gradient with the shape of outputs)
        """
        if not self.has_first_derivative:
            raise TypeError(f"{type(self).__name__} has no first derivative")

        with torch.enable_grad():
            outputs = outputs.detach().requires_grad_(True)
            value = self.evaluate(labels, outputs)
            (gradient,) = torch.autograd.grad(value, outputs)
        return value.detach(), gradient

    def forward(self, predictions: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        """
        Calculate the reduced loss, recording it in loss_history (last LOSS_HISTORY_SIZE values).

        Args:
            predictions: Model outputs (N, ...)
            targets: Labels (N, ...)

        Returns:
            torch.Tensor: Loss reduced according to self.reduction
        """
        losses = self.per_example(targets, predictions)

        if self.reduction == 'mean':
            losses = losses.mean()
        elif self.reduction == 'sum':
            losses = losses.sum()
        else:
            return losses

        self.loss_history.append(losses.item())
        return losses

    def get_loss_statistics(self) -> Dict[str, float]:
        """Get statistical summary of loss history"""
        if not self.loss_history:
            return {}

        history = torch.tensor(list(self.loss_history))
        return {
            'mean': history.mean().item(),
            'std': history.std().item() if len(self.loss_history) > 1 else 0.0,
            'min': history.min().item(),
            'max': history.max().item(),
            'last': history[-1].item()
        }


def _check_same_shape(labels: torch.Tensor, outputs: torch.Tensor):
    if labels.shape != outputs.shape:
        raise ValueError(
            f"Label shape {tuple(labels.shape)} does not match output shape {tuple(outputs.shape)}"
        )


class SquaredLoss(AbstractLoss):
    """
    Squared Euclidean distance between output and label.

    Mathematical formulation:
    L(y, f(x)) = ||f(x) - y||²
    ∂L/∂f(x) = 2 (f(x) - y)
    """

    def per_example(self, labels: torch.Tensor, outputs: torch.Tensor) -> torch.Tensor:
        _check_same_shape(labels, outputs)
        return ((outputs - labels) ** 2).sum(dim=1)

    def evaluate_derivative(self, labels: torch.Tensor,
                            outputs: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        _check_same_shape(labels, outputs)
        difference = outputs - labels
        return (difference ** 2).sum(), 2 * difference
