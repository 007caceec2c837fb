"""
Base class for scalar objective functions over a flat parameter vector.
"""

import torch
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple


class SingleObjectiveFunction(ABC):
    """
    Objective function f: R^n -> R consumed by optimizers.

    Subclasses implement number_of_variables() and eval(); differentiable
    objectives set has_first_derivative and implement eval_derivative().
    """

    has_first_derivative = False

    def __init__(self):
        self.evaluation_counter = 0

    def name(self) -> str:
        return type(self).__name__

    def init(self, generator: Optional[torch.Generator] = None):
        """Bind a random source before first use. Deterministic objectives ignore it."""

    @abstractmethod
    def number_of_variables(self) -> Optional[int]:
        """Length of the parameter vector, None if any length is accepted"""

    def propose_starting_point(self) -> torch.Tensor:
        return torch.zeros(self.number_of_variables() or 0)

    def check_point(self, point: Any) -> torch.Tensor:
        point = torch.as_tensor(point)
        if not torch.is_floating_point(point):
            point = point.to(torch.get_default_dtype())
        expected = self.number_of_variables()
        if point.dim() != 1 or (expected is not None and point.numel() != expected):
            raise ValueError(
                f"{self.name()} expects a point of length {expected}, got shape {tuple(point.shape)}"
            )
        return point

    @abstractmethod
    def eval(self, point: Any) -> float:
        """Objective value at point"""

    def eval_derivative(self, point: Any,
                        out: Optional[torch.Tensor] = None) -> Tuple[float, torch.Tensor]:
        """Objective value and gradient at point; the gradient is also copied into `out`"""
        raise TypeError(f"{self.name()} has no first derivative")

    def __call__(self, point: Any) -> float:
        return self.eval(point)


def copy_into(out: Optional[torch.Tensor], gradient: torch.Tensor):
    """Copy a gradient into a caller-provided buffer of the same shape"""
    if out is None:
        return
    if out.shape != gradient.shape:
        raise ValueError(
            f"Derivative buffer has shape {tuple(out.shape)}, expected {tuple(gradient.shape)}"
        )
    out.copy_(gradient)
