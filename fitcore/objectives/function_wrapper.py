"""
Wrappers hiding the (input kind, label kind, output kind) triple of an error function.

ErrorFunction only talks to FunctionWrapperBase. The concrete wrappers check once,
at construction, that dataset, model and loss fit together, and then run the
shared accumulate-and-normalize evaluation over the batches a BatchSelector picks.
"""

import copy
import torch
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from fitcore.datasets.dataset import LabeledData, WeightedLabeledData
from fitcore.datasets.data_loaders import BatchSelector, MiniBatchSelector, create_batch_selector
from fitcore.models.base_model import AbstractModel
from fitcore.models.loss_functions.base_losses import AbstractLoss


class FunctionWrapperBase(ABC):
    """Kind-independent interface of an error function"""

    has_first_derivative = False

    @abstractmethod
    def number_of_variables(self) -> int:
        pass

    @abstractmethod
    def propose_starting_point(self) -> torch.Tensor:
        pass

    @abstractmethod
    def check_point(self, point: Any) -> torch.Tensor:
        pass

    @abstractmethod
    def eval(self, point: torch.Tensor) -> float:
        pass

    @abstractmethod
    def eval_derivative(self, point: torch.Tensor) -> Tuple[float, torch.Tensor]:
        pass

    def set_generator(self, generator: Optional[torch.Generator]):
        pass

    @abstractmethod
    def clone(self) -> 'FunctionWrapperBase':
        pass


def check_compatibility(dataset: LabeledData, model: AbstractModel, loss: AbstractLoss):
    """Raise if dataset, model and loss cannot be combined into an error function"""
    if len(dataset) == 0:
        raise ValueError("Cannot build an error function on an empty dataset")

    if model.output_kind not in loss.output_kinds:
        raise TypeError(
            f"{type(loss).__name__} does not accept '{model.output_kind}' outputs "
            f"of {type(model).__name__}"
        )
    if dataset.label_kind != loss.label_kind:
        raise TypeError(
            f"{type(loss).__name__} expects '{loss.label_kind}' labels, "
            f"dataset holds '{dataset.label_kind}' labels"
        )

    input_shape = model.input_shape
    if input_shape and tuple(input_shape) != dataset.input_shape:
        raise ValueError(
            f"{type(model).__name__} expects inputs of shape {tuple(input_shape)}, "
            f"dataset inputs have shape {dataset.input_shape}"
        )

    parameters = model.parameter_vector()
    if parameters.dim() != 1 or parameters.numel() != model.number_of_parameters():
        raise ValueError(
            f"{type(model).__name__} reports {model.number_of_parameters()} parameters "
            f"but its parameter vector has shape {tuple(parameters.shape)}"
        )


class ErrorFunctionWrapper(FunctionWrapperBase):
    """
    Mean loss of a model over a dataset.

    Full batch:  E(w) = 1/N Σₙ L(yₙ, f_w(xₙ))
    Mini batch:  E(w) = 1/b Σ_{n ∈ B} L(yₙ, f_w(xₙ)), B drawn uniformly from the partition
    """

    def __init__(self,
                 dataset: LabeledData,
                 model: AbstractModel,
                 loss: AbstractLoss,
                 use_mini_batches: bool = False):
        check_compatibility(dataset, model, loss)

        self.dataset = dataset
        self.model = model
        self.loss = loss
        self.selector: BatchSelector = create_batch_selector(dataset, use_mini_batches)
        self.has_first_derivative = (
            model.has_first_parameter_derivative and loss.has_first_derivative
        )

    def number_of_variables(self) -> int:
        return self.model.number_of_parameters()

    def propose_starting_point(self) -> torch.Tensor:
        return self.model.parameter_vector()

    def check_point(self, point: Any) -> torch.Tensor:
        return self.model.check_parameter_vector(point)

    def set_generator(self, generator: Optional[torch.Generator]):
        self.selector.set_generator(generator)

    def _batch(self, index: int):
        inputs, labels = self.dataset.batch(index)
        return inputs, labels, None

    def _normalization(self, indices: List[int]) -> float:
        return self.selector.example_count(indices)

    def _weighted_loss(self, labels: torch.Tensor, outputs: torch.Tensor,
                       weights: Optional[torch.Tensor]) -> float:
        return self.loss.evaluate(labels, outputs).item()

    def _weighted_loss_derivative(self, labels: torch.Tensor, outputs: torch.Tensor,
                                  weights: Optional[torch.Tensor]) -> Tuple[float, torch.Tensor]:
        value, coefficients = self.loss.evaluate_derivative(labels, outputs)
        return value.item(), coefficients

    def eval(self, point: torch.Tensor) -> float:
        state = self.model.parameter_state(point)
        indices = self.selector.select()

        error = 0.0
        with torch.no_grad():
            for index in indices:
                inputs, labels, weights = self._batch(index)
                outputs = self.model.eval_batch(inputs, state)
                error += self._weighted_loss(labels, outputs, weights)

        return error / self._normalization(indices)

    def eval_derivative(self, point: torch.Tensor) -> Tuple[float, torch.Tensor]:
        indices = self.selector.select()

        error = 0.0
        gradient = torch.zeros_like(point)
        for index in indices:
            inputs, labels, weights = self._batch(index)
            outputs, pullback = self.model.eval_with_pullback(inputs, point)
            value, coefficients = self._weighted_loss_derivative(labels, outputs, weights)
            error += value
            gradient += pullback(coefficients)

        normalization = self._normalization(indices)
        return error / normalization, gradient / normalization

    def clone(self) -> 'ErrorFunctionWrapper':
        # Dataset and loss stay shared, the model is owned by the wrapper.
        # A mini-batch copy has no random source until set_generator() is called.
        duplicate = copy.copy(self)
        duplicate.model = copy.deepcopy(self.model)
        duplicate.selector = create_batch_selector(
            self.dataset, isinstance(self.selector, MiniBatchSelector)
        )
        return duplicate


class WeightedErrorFunctionWrapper(ErrorFunctionWrapper):
    """
    Weighted mean loss over the whole dataset.

    E(w) = Σₙ αₙ L(yₙ, f_w(xₙ)) / Σₙ αₙ
    """

    def __init__(self,
                 dataset: WeightedLabeledData,
                 model: AbstractModel,
                 loss: AbstractLoss):
        super(WeightedErrorFunctionWrapper, self).__init__(dataset, model, loss)

        self.sum_of_weights = dataset.sum_of_weights()
        if self.sum_of_weights <= 0:
            raise ValueError("Weighted dataset needs a positive sum of weights")

    def _batch(self, index: int):
        return self.dataset.batch(index)

    def _normalization(self, indices: List[int]) -> float:
        return self.sum_of_weights

    def _weighted_loss(self, labels: torch.Tensor, outputs: torch.Tensor,
                       weights: Optional[torch.Tensor]) -> float:
        losses = self.loss.per_example(labels, outputs)
        return (weights.to(losses.dtype) * losses).sum().item()

    def _weighted_loss_derivative(self, labels: torch.Tensor, outputs: torch.Tensor,
                                  weights: Optional[torch.Tensor]) -> Tuple[float, torch.Tensor]:
        _, coefficients = self.loss.evaluate_derivative(labels, outputs)
        value = self._weighted_loss(labels, outputs, weights)
        return value, coefficients * weights.to(coefficients.dtype).unsqueeze(1)
