"""
Weighted mean ensemble over already trained sub-models.

Mathematical formulation:
- Continuous outputs: f(x) = Σᵢ wᵢ fᵢ(x) / Σᵢ wᵢ
- Class-index outputs: f_c(x) = Σᵢ wᵢ [fᵢ(x) = c] / Σᵢ wᵢ  (weighted vote share)

The aggregation rule is fixed when the ensemble is built; one ensemble only ever
combines one kind of sub-model output.
"""

import math
import torch
import torch.nn as nn
from pathlib import Path
from typing import List, Tuple, Optional, Union
import logging

from fitcore.models.base_model import AbstractModel
from fitcore.utils.config import CONTINUOUS, LABEL, DEFAULT_MODEL_WEIGHT

logger = logging.getLogger(__name__)


class ContinuousMean:
    """Weighted arithmetic mean of real-valued sub-model outputs"""

    kind = CONTINUOUS

    def aggregate(self, ensemble: 'MeanModel', inputs: torch.Tensor) -> torch.Tensor:
        outputs = None
        # Without a declared size the first sub-model fixes the width
        expected = ensemble.output_size
        for i, (model, weight) in enumerate(zip(ensemble.models, ensemble.model_weights)):
            with torch.no_grad():
                prediction = model(inputs)

            if expected is None and prediction.dim() == 2:
                expected = prediction.shape[1]
            if prediction.dim() != 2 or prediction.shape[1] != expected:
                raise ValueError(
                    f"Model {i} produced outputs of shape {tuple(prediction.shape)}, "
                    f"expected (N, {expected})"
                )

            if outputs is None:
                outputs = weight * prediction
            else:
                outputs = outputs + weight * prediction

        return outputs / ensemble.weight_sum


class WeightedVote:
    """Each sub-model adds its weight to the column of the class it predicts"""

    kind = LABEL

    def aggregate(self, ensemble: 'MeanModel', inputs: torch.Tensor) -> torch.Tensor:
        if ensemble.output_size is None:
            raise ValueError("Voting ensembles need set_output_size() before evaluation")

        num_examples = inputs.shape[0]
        dtype = inputs.dtype if torch.is_floating_point(inputs) else torch.get_default_dtype()
        outputs = torch.zeros(num_examples, ensemble.output_size, dtype=dtype)
        rows = torch.arange(num_examples)

        for i, (model, weight) in enumerate(zip(ensemble.models, ensemble.model_weights)):
            with torch.no_grad():
                responses = model(inputs).long()

            if responses.shape != (num_examples,):
                raise ValueError(
                    f"Model {i} produced responses of shape {tuple(responses.shape)}, "
                    f"expected ({num_examples},)"
                )
            if ((responses < 0) | (responses >= ensemble.output_size)).any():
                raise ValueError(
                    f"Model {i} voted for a class outside [0, {ensemble.output_size})"
                )

            outputs[rows, responses] += weight

        return outputs / ensemble.weight_sum


AGGREGATION_STRATEGIES = {
    CONTINUOUS: ContinuousMean,
    LABEL: WeightedVote
}


class MeanModel(AbstractModel):
    """
    Calculates the weighted mean of a set of models.

    The ensemble has no trainable parameters of its own; its parameter vector is
    always empty. The running weight sum is updated on every add, set, remove and
    clear so normalization costs O(1).
    """

    def __init__(self, sub_model_kind: str = CONTINUOUS, output_size: Optional[int] = None):
        super(MeanModel, self).__init__()

        if sub_model_kind not in AGGREGATION_STRATEGIES:
            raise ValueError(
                f"Unknown sub-model kind: {sub_model_kind}. "
                f"Available: {list(AGGREGATION_STRATEGIES.keys())}"
            )

        self.sub_model_kind = sub_model_kind
        self.aggregation = AGGREGATION_STRATEGIES[sub_model_kind]()
        self.models = nn.ModuleList()
        self.model_weights: List[float] = []
        self.weight_sum = 0.0
        self.output_size = None

        if output_size is not None:
            self.set_output_size(output_size)

    def name(self) -> str:
        return "MeanModel"

    @property
    def input_shape(self) -> Tuple[int, ...]:
        if not self.models:
            return ()
        return tuple(getattr(self.models[0], 'input_shape', ()))

    @property
    def output_shape(self) -> Tuple[int, ...]:
        if self.output_size is not None:
            return (self.output_size,)
        if not self.models or self.sub_model_kind == LABEL:
            return ()
        return tuple(getattr(self.models[0], 'output_shape', ()))

    def named_trainable_parameters(self):
        # Sub-model parameters are not part of the ensemble's parameter vector
        return []

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if not self.models:
            raise ValueError("MeanModel has no models to aggregate")
        return self.aggregation.aggregate(self, x)

    @staticmethod
    def _check_weight(weight: float):
        if not math.isfinite(weight) or weight <= 0:
            raise ValueError(f"Weights must be positive, got {weight}")

    def add_model(self, model: nn.Module, weight: float = DEFAULT_MODEL_WEIGHT):
        """
        Adds a new model to the ensemble.

        Args:
            model: The new model; its output kind must match the ensemble's
            weight: Weight of the model, must be > 0
        """
        self._check_weight(weight)
        model_kind = getattr(model, 'output_kind', CONTINUOUS)
        if model_kind != self.sub_model_kind:
            raise TypeError(
                f"Cannot add a model with '{model_kind}' outputs to a "
                f"'{self.sub_model_kind}' ensemble"
            )

        self.models.append(model)
        self.model_weights.append(float(weight))
        self.weight_sum += weight
        logger.debug(f"Added {type(model).__name__} with weight {weight}, weight sum {self.weight_sum}")

    def remove_model(self, index: int):
        """Removes the index-th model and its weight"""
        weight = self.model_weights[index]
        del self.models[index]
        del self.model_weights[index]
        self.weight_sum -= weight
        logger.debug(f"Removed model {index}, weight sum {self.weight_sum}")

    def clear_models(self):
        """Removes all models from the ensemble"""
        self.models = nn.ModuleList()
        self.model_weights = []
        self.weight_sum = 0.0
        logger.debug("Cleared all models")

    def get_model(self, index: int) -> nn.Module:
        return self.models[index]

    def weight(self, index: int) -> float:
        """Returns the weight of the index-th model"""
        return self.model_weights[index]

    def set_weight(self, index: int, new_weight: float):
        """Sets the weight of the index-th model, must be > 0"""
        old_weight = self.model_weights[index]
        self._check_weight(new_weight)
        self.weight_sum += new_weight - old_weight
        self.model_weights[index] = float(new_weight)

    def set_output_size(self, dim: int):
        """Sets the dimensionality of the output"""
        if dim <= 0:
            raise ValueError(f"Output size must be positive, got {dim}")
        self.output_size = int(dim)

    def number_of_models(self) -> int:
        return len(self.models)

    def write(self, path: Union[str, Path]):
        """Save sub-models, weights, weight sum and output size"""
        checkpoint = {
            'sub_model_kind': self.sub_model_kind,
            'models': list(self.models),
            'model_weights': list(self.model_weights),
            'weight_sum': self.weight_sum,
            'output_size': self.output_size
        }
        torch.save(checkpoint, path)
        logger.info(f"MeanModel with {self.number_of_models()} models saved: {path}")

    def read(self, path: Union[str, Path]):
        """Replace the full ensemble state with a checkpoint written by write()"""
        checkpoint = torch.load(path, map_location='cpu', weights_only=False)

        if checkpoint['sub_model_kind'] != self.sub_model_kind:
            raise TypeError(
                f"Checkpoint holds a '{checkpoint['sub_model_kind']}' ensemble, "
                f"this ensemble aggregates '{self.sub_model_kind}' outputs"
            )
        if len(checkpoint['models']) != len(checkpoint['model_weights']):
            raise ValueError("Checkpoint has a different number of models and weights")

        self.models = nn.ModuleList(checkpoint['models'])
        self.model_weights = [float(w) for w in checkpoint['model_weights']]
        self.weight_sum = float(checkpoint['weight_sum'])
        self.output_size = checkpoint['output_size']
        logger.info(f"MeanModel with {self.number_of_models()} models loaded: {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'MeanModel':
        checkpoint = torch.load(path, map_location='cpu', weights_only=False)
        ensemble = cls(sub_model_kind=checkpoint['sub_model_kind'])
        ensemble.read(path)
        return ensemble
