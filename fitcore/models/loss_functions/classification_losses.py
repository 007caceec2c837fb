"""
Classification losses over class-index labels.
Includes cross entropy, focal loss for class imbalance and the zero-one loss.
"""

import torch
import torch.nn.functional as F
from typing import Tuple

from fitcore.models.loss_functions.base_losses import AbstractLoss
from fitcore.utils.config import CONTINUOUS, LABEL


def _check_labels(labels: torch.Tensor, outputs: torch.Tensor):
    if labels.dim() != 1 or labels.shape[0] != outputs.shape[0]:
        raise ValueError(
            f"Expected {outputs.shape[0]} class indices, got shape {tuple(labels.shape)}"
        )


class CrossEntropyLoss(AbstractLoss):
    """
    Cross entropy of softmax outputs against class labels.

    Mathematical formulation:
    L(y, f(x)) = log Σ_c exp(f_c(x)) - f_y(x)
    ∂L/∂f(x) = softmax(f(x)) - e_y

    A single output column is read as the logit of class 1:
    L = softplus(-s f(x)) with s = 2y - 1.
    """

    label_kind = LABEL

    def per_example(self, labels: torch.Tensor, outputs: torch.Tensor) -> torch.Tensor:
        _check_labels(labels, outputs)
        if outputs.shape[1] == 1:
            sign = (2 * labels - 1).to(outputs.dtype)
            return F.softplus(-sign * outputs[:, 0])
        return torch.logsumexp(outputs, dim=1) - outputs.gather(1, labels.unsqueeze(1)).squeeze(1)

    def evaluate_derivative(self, labels: torch.Tensor,
                            outputs: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        value = self.evaluate(labels, outputs)
        if outputs.shape[1] == 1:
            sign = (2 * labels - 1).to(outputs.dtype)
            gradient = (-sign * torch.sigmoid(-sign * outputs[:, 0])).unsqueeze(1)
            return value, gradient

        gradient = torch.softmax(outputs, dim=1)
        gradient[torch.arange(labels.shape[0]), labels] -= 1
        return value, gradient


class FocalLoss(AbstractLoss):
    """
    Focal Loss for addressing class imbalance in classification tasks.

    Mathematical formulation:
    FL(p_t) = -α * (1 - p_t)^γ * log(p_t)

    where:
    - p_t is the predicted probability for the true class
    - α is the weighting factor
    - γ (gamma) is the focusing parameter
    """

    label_kind = LABEL

    def __init__(self, alpha: float = 1.0, gamma: float = 2.0, reduction: str = 'mean'):
        super(FocalLoss, self).__init__(reduction)
        self.alpha = alpha
        self.gamma = gamma

    def per_example(self, labels: torch.Tensor, outputs: torch.Tensor) -> torch.Tensor:
        _check_labels(labels, outputs)
        ce_loss = F.cross_entropy(outputs, labels, reduction='none')

        # Probability of the true class
        pt = torch.exp(-ce_loss)

        return self.alpha * (1 - pt) ** self.gamma * ce_loss


class ZeroOneLoss(AbstractLoss):
    """
    Number of misclassified examples.

    Accepts class-index outputs directly or continuous scores, which are turned
    into a class by argmax (or by sign for a single score column).
    """

    label_kind = LABEL
    output_kinds = (LABEL, CONTINUOUS)
    has_first_derivative = False

    def per_example(self, labels: torch.Tensor, outputs: torch.Tensor) -> torch.Tensor:
        if torch.is_floating_point(outputs):
            if outputs.shape[1] == 1:
                predictions = (outputs[:, 0] > 0).long()
            else:
                predictions = torch.argmax(outputs, dim=1)
        else:
            predictions = outputs
        _check_labels(labels, predictions.unsqueeze(1))
        return (predictions != labels).to(torch.get_default_dtype())
