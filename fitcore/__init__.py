"""
fitcore: objective-function evaluation and ensemble aggregation for model fitting.

Key Features:
- Error functions mapping a parameter vector to mean loss and its gradient
- Full-batch, mini-batch and weighted evaluation over a fixed dataset snapshot
- Norm regularization and finite-difference derivative checks
- Weighted mean and weighted vote ensembles over trained sub-models
"""

from fitcore.datasets import LabeledData, WeightedLabeledData
from fitcore.models import AbstractModel, LinearModel, LinearClassifier
from fitcore.models.loss_functions import (
    AbstractLoss,
    SquaredLoss,
    CrossEntropyLoss,
    FocalLoss,
    ZeroOneLoss,
    create_loss_function
)
from fitcore.models.ensemble_methods import MeanModel, EnsembleConfig, create_mean_model
from fitcore.objectives import (
    ErrorFunction,
    SingleObjectiveFunction,
    TwoNormRegularizer,
    OneNormRegularizer,
    estimate_derivative
)

__all__ = [
    'LabeledData',
    'WeightedLabeledData',
    'AbstractModel',
    'LinearModel',
    'LinearClassifier',
    'AbstractLoss',
    'SquaredLoss',
    'CrossEntropyLoss',
    'FocalLoss',
    'ZeroOneLoss',
    'create_loss_function',
    'MeanModel',
    'EnsembleConfig',
    'create_mean_model',
    'ErrorFunction',
    'SingleObjectiveFunction',
    'TwoNormRegularizer',
    'OneNormRegularizer',
    'estimate_derivative'
]

# Package metadata
__version__ = "1.0.0"
