"""
Ensemble methods combining trained sub-models.

Mathematical Foundation:
- Weighted mean: f(x) = Σᵢ wᵢ fᵢ(x) / Σᵢ wᵢ
- Weighted vote: f_c(x) = Σᵢ wᵢ [fᵢ(x) = c] / Σᵢ wᵢ
"""

# Import ensemble implementations
from .mean_model import MeanModel, ContinuousMean, WeightedVote, AGGREGATION_STRATEGIES

# Import utilities
from .uncertainty_utils import ModelUncertainty, evaluate_ensemble_diversity

# Import factory and configuration
from .ensemble_factory import create_mean_model, EnsembleConfig

# Define exports
__all__ = [
    # Ensemble implementations
    'MeanModel',
    'ContinuousMean',
    'WeightedVote',
    'AGGREGATION_STRATEGIES',

    # Utilities
    'ModelUncertainty',
    'evaluate_ensemble_diversity',

    # Factory and configuration
    'create_mean_model',
    'EnsembleConfig'
]
