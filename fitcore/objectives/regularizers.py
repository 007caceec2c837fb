"""
Norm regularizers to be added to an error function with set_regularizer().

Mathematical formulation:
- Two-norm: R(w) = ½ Σᵢ mᵢ wᵢ²,  ∂R/∂wᵢ = mᵢ wᵢ
- One-norm: R(w) = Σᵢ mᵢ |wᵢ|,   ∂R/∂wᵢ = mᵢ sign(wᵢ)

The optional mask m excludes entries (e.g. bias terms) from regularization.
"""

import torch
from typing import Any, Optional, Tuple

from fitcore.objectives.abstract_objective import SingleObjectiveFunction, copy_into


class _NormRegularizer(SingleObjectiveFunction):

    has_first_derivative = True

    def __init__(self, number_of_variables: Optional[int] = None, mask: Any = None):
        super(_NormRegularizer, self).__init__()
        self.mask = None if mask is None else torch.as_tensor(mask)
        if self.mask is not None:
            if number_of_variables is not None and self.mask.numel() != number_of_variables:
                raise ValueError(
                    f"Mask has {self.mask.numel()} entries for {number_of_variables} variables"
                )
            number_of_variables = self.mask.numel()
        self._number_of_variables = number_of_variables

    def number_of_variables(self) -> Optional[int]:
        return self._number_of_variables

    def _masked(self, values: torch.Tensor) -> torch.Tensor:
        if self.mask is None:
            return values
        return values * self.mask.to(values.dtype)


class TwoNormRegularizer(_NormRegularizer):
    """Half the squared Euclidean norm of the parameter vector"""

    def eval(self, point: Any) -> float:
        point = self.check_point(point)
        self.evaluation_counter += 1
        return 0.5 * self._masked(point ** 2).sum().item()

    def eval_derivative(self, point: Any,
                        out: Optional[torch.Tensor] = None) -> Tuple[float, torch.Tensor]:
        point = self.check_point(point)
        self.evaluation_counter += 1
        gradient = self._masked(point)
        copy_into(out, gradient)
        return 0.5 * self._masked(point ** 2).sum().item(), gradient


class OneNormRegularizer(_NormRegularizer):
    """Sum of absolute parameter values"""

    def eval(self, point: Any) -> float:
        point = self.check_point(point)
        self.evaluation_counter += 1
        return self._masked(point.abs()).sum().item()

    def eval_derivative(self, point: Any,
                        out: Optional[torch.Tensor] = None) -> Tuple[float, torch.Tensor]:
        point = self.check_point(point)
        self.evaluation_counter += 1
        gradient = self._masked(torch.sign(point))
        copy_into(out, gradient)
        return self._masked(point.abs()).sum().item(), gradient
