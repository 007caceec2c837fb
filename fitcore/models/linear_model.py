# Linear models for regression and classification
import torch
import torch.nn as nn
from typing import Optional, Tuple

from fitcore.models.base_model import AbstractModel
from fitcore.utils.config import LABEL


class LinearModel(AbstractModel):
    """
    Affine model f(x) = W x + b.

    Parameter vector layout: W row-major, then b (when bias is enabled).
    """

    def __init__(self, input_dim: int, output_dim: int = 1, bias: bool = True,
                 dtype: Optional[torch.dtype] = None):
        super(LinearModel, self).__init__()
        self.linear = nn.Linear(input_dim, output_dim, bias=bias, dtype=dtype)

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return (self.linear.in_features,)

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return (self.linear.out_features,)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.linear(x)


class LinearClassifier(AbstractModel):
    """
    Classifier predicting argmax of a linear decision function.

    With a single decision output the class is 1 when the output is positive, else 0.
    Outputs are class indices, so there is no parameter derivative.
    """

    output_kind = LABEL
    has_first_parameter_derivative = False

    def __init__(self, input_dim: int, num_classes: int, bias: bool = True,
                 dtype: Optional[torch.dtype] = None):
        super(LinearClassifier, self).__init__()
        decision_outputs = 1 if num_classes == 2 else num_classes
        self.decision_function = LinearModel(input_dim, decision_outputs, bias=bias, dtype=dtype)
        self.num_classes = num_classes

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return self.decision_function.input_shape

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return ()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        scores = self.decision_function(x)
        if scores.shape[1] == 1:
            return (scores[:, 0] > 0).long()
        return torch.argmax(scores, dim=1)
