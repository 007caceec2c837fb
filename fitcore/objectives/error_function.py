"""
Objective function for supervised learning.

An ErrorFunction is an objective function for learning the parameters of a model
from data by minimizing a loss. Its value is the mean loss of the model
predictions on the training data, given the labels, optionally plus a weighted
regularization term.

It supports mini-batch learning through the use_mini_batches argument: each
evaluation then draws one random batch from the dataset's batch partition, so
the minibatch size is the batch size of the dataset. Normalization makes batches
of different sizes produce errors and derivatives of the same magnitude.

Dataset label kind and model output kind are inferred when the function is
built and checked against the loss, so a mismatch fails immediately.

A copy (copy.copy or copy.deepcopy) owns a deep copy of the model and shares
dataset, loss and regularizer. A mini-batch copy needs its own init() before it
can be evaluated; it never shares the random source of the original.
"""

import torch
from typing import Any, Optional, Tuple
import logging

from fitcore.datasets.dataset import LabeledData, WeightedLabeledData
from fitcore.models.base_model import AbstractModel
from fitcore.models.loss_functions.base_losses import AbstractLoss
from fitcore.objectives.abstract_objective import SingleObjectiveFunction, copy_into
from fitcore.objectives.function_wrapper import (
    FunctionWrapperBase,
    ErrorFunctionWrapper,
    WeightedErrorFunctionWrapper
)

logger = logging.getLogger(__name__)


class ErrorFunction(SingleObjectiveFunction):
    """
    E(w) = mean loss of f_w over the dataset + c * R(w)

    Example:
        error = ErrorFunction(data, LinearModel(3, 1), SquaredLoss())
        value, gradient = error.eval_derivative(error.propose_starting_point())
    """

    def __init__(self,
                 dataset: LabeledData,
                 model: AbstractModel,
                 loss: AbstractLoss,
                 use_mini_batches: bool = False):
        super(ErrorFunction, self).__init__()

        if isinstance(dataset, WeightedLabeledData):
            if use_mini_batches:
                raise ValueError("Mini-batches cannot be combined with example weights")
            self._wrapper: FunctionWrapperBase = WeightedErrorFunctionWrapper(dataset, model, loss)
        else:
            self._wrapper = ErrorFunctionWrapper(dataset, model, loss, use_mini_batches)

        self._regularizer: Optional[SingleObjectiveFunction] = None
        self._regularization_strength = 0.0

        logger.info(
            f"ErrorFunction initialized: {len(dataset)} examples in "
            f"{dataset.number_of_batches()} batches, {self.number_of_variables()} variables, "
            f"model {type(model).__name__}, loss {type(loss).__name__}, "
            f"mini-batches {use_mini_batches}, weighted {isinstance(dataset, WeightedLabeledData)}"
        )

    def name(self) -> str:
        return "ErrorFunction"

    @property
    def has_first_derivative(self) -> bool:
        if not self._wrapper.has_first_derivative:
            return False
        if self._regularization_active():
            return self._regularizer.has_first_derivative
        return True

    def set_regularizer(self, factor: float, regularizer: SingleObjectiveFunction):
        """Add factor * regularizer(w) to the error. A factor <= 0 disables the term."""
        variables = regularizer.number_of_variables()
        if variables is not None and variables != self.number_of_variables():
            raise ValueError(
                f"Regularizer has {variables} variables, error function has "
                f"{self.number_of_variables()}"
            )
        self._regularizer = regularizer
        self._regularization_strength = float(factor)

    def _regularization_active(self) -> bool:
        return self._regularizer is not None and self._regularization_strength > 0

    def number_of_variables(self) -> int:
        return self._wrapper.number_of_variables()

    def propose_starting_point(self) -> torch.Tensor:
        return self._wrapper.propose_starting_point()

    def init(self, generator: Optional[torch.Generator] = None):
        """Bind the random source for mini-batch sampling; None uses torch's default generator"""
        self._wrapper.set_generator(generator)

    def check_point(self, point: Any) -> torch.Tensor:
        return self._wrapper.check_point(point)

    def eval(self, point: Any) -> float:
        point = self.check_point(point)
        self.evaluation_counter += 1

        error = self._wrapper.eval(point)
        if self._regularization_active():
            error += self._regularization_strength * self._regularizer.eval(point)

        logger.debug(f"eval #{self.evaluation_counter}: error {error:.6g}")
        return error

    def eval_derivative(self, point: Any,
                        out: Optional[torch.Tensor] = None) -> Tuple[float, torch.Tensor]:
        """
        Error and its gradient with respect to the parameter vector.

        Args:
            point: Parameter vector of length number_of_variables()
            out: Optional buffer the gradient is copied into

        Returns:
            tuple: (error, gradient)
        """
        if not self.has_first_derivative:
            raise TypeError("Model, loss or regularizer of this ErrorFunction has no first derivative")

        point = self.check_point(point)
        self.evaluation_counter += 1

        error, gradient = self._wrapper.eval_derivative(point)
        if self._regularization_active():
            regularizer_error, regularizer_gradient = self._regularizer.eval_derivative(point)
            error += self._regularization_strength * regularizer_error
            gradient = gradient + self._regularization_strength * regularizer_gradient.to(gradient.dtype)

        copy_into(out, gradient)
        logger.debug(f"eval_derivative #{self.evaluation_counter}: error {error:.6g}")
        return error, gradient

    def __copy__(self) -> 'ErrorFunction':
        duplicate = self.__class__.__new__(self.__class__)
        duplicate.__dict__.update(self.__dict__)
        duplicate._wrapper = self._wrapper.clone()
        return duplicate

    def __deepcopy__(self, memo) -> 'ErrorFunction':
        return self.__copy__()
