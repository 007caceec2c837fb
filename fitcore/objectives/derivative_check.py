# Finite-difference estimates for checking analytic derivatives
import torch
from typing import Any

from fitcore.objectives.abstract_objective import SingleObjectiveFunction
from fitcore.utils.config import FINITE_DIFFERENCE_EPSILON


def estimate_derivative(objective: SingleObjectiveFunction,
                        point: Any,
                        epsilon: float = FINITE_DIFFERENCE_EPSILON) -> torch.Tensor:
    """
    Central difference estimate of the gradient of `objective` at `point`.

    ∂f/∂wᵢ ≈ (f(w + εeᵢ) - f(w - εeᵢ)) / 2ε

    Needs 2n evaluations; mini-batch objectives give meaningless estimates
    because every evaluation draws a new batch.
    """
    point = objective.check_point(point).detach().clone()
    gradient = torch.zeros_like(point)

    for i in range(point.numel()):
        original = point[i].item()

        point[i] = original + epsilon
        upper = objective.eval(point)
        point[i] = original - epsilon
        lower = objective.eval(point)
        point[i] = original

        gradient[i] = (upper - lower) / (2 * epsilon)

    return gradient
