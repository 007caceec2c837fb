"""
Factory function and configuration for ensemble creation.
"""

import torch.nn as nn
from typing import List, Optional
from dataclasses import dataclass

from fitcore.models.ensemble_methods.mean_model import MeanModel
from fitcore.utils.config import CONTINUOUS, DEFAULT_MODEL_WEIGHT


@dataclass
class EnsembleConfig:
    """Configuration for mean ensembles."""
    model_weights: Optional[List[float]] = None  # DEFAULT_MODEL_WEIGHT for every model when None
    sub_model_kind: str = CONTINUOUS  # 'continuous' (weighted mean) or 'label' (weighted vote)
    output_size: Optional[int] = None


def create_mean_model(models: List[nn.Module],
                      config: Optional[EnsembleConfig] = None) -> MeanModel:
    """
    Create a MeanModel holding the given sub-models.

    Args:
        models: List of trained sub-models
        config: Ensemble configuration

    Returns:
        MeanModel: Ensemble with one entry per model
    """
    config = config or EnsembleConfig()

    weights = config.model_weights
    if weights is None:
        weights = [DEFAULT_MODEL_WEIGHT] * len(models)
    if len(weights) != len(models):
        raise ValueError(f"Got {len(weights)} weights for {len(models)} models")

    ensemble = MeanModel(sub_model_kind=config.sub_model_kind, output_size=config.output_size)
    for model, weight in zip(models, weights):
        ensemble.add_model(model, weight)

    return ensemble
