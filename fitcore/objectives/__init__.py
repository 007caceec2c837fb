"""
Objective functions for fitting model parameters to labeled data.

Mathematical Foundation:
- Error function: E(w) = Σₙ αₙ L(yₙ, f_w(xₙ)) / Σₙ αₙ  (αₙ = 1 without weights)
- Mini-batch estimate: E_B(w) = (N / b) Σ_{n ∈ B} L(yₙ, f_w(xₙ)) / N
- Regularized error: E(w) + c R(w)
- Gradient by the chain rule: ∇E(w) = Σₙ αₙ (∂f_w(xₙ)/∂w)ᵀ ∂L/∂f / Σₙ αₙ
"""

from .abstract_objective import SingleObjectiveFunction
from .function_wrapper import (
    FunctionWrapperBase,
    ErrorFunctionWrapper,
    WeightedErrorFunctionWrapper,
    check_compatibility
)
from .error_function import ErrorFunction
from .regularizers import TwoNormRegularizer, OneNormRegularizer
from .derivative_check import estimate_derivative

__all__ = [
    'SingleObjectiveFunction',
    'FunctionWrapperBase',
    'ErrorFunctionWrapper',
    'WeightedErrorFunctionWrapper',
    'check_compatibility',
    'ErrorFunction',
    'TwoNormRegularizer',
    'OneNormRegularizer',
    'estimate_derivative'
]
