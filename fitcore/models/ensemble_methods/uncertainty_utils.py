"""
Uncertainty and diversity measures for mean ensembles.
"""

import torch
import numpy as np
from typing import Dict

from fitcore.datasets.dataset import LabeledData
from fitcore.models.ensemble_methods.mean_model import MeanModel
from fitcore.utils.config import LABEL


class ModelUncertainty:
    """
    Uncertainty quantification for ensemble predictions.

    Methods:
    - Predictive Entropy: H(y|x) = -Σ p(y|x) log p(y|x)
    - Variance of Predictions: Var[fᵢ(x)]
    """

    @staticmethod
    def predictive_entropy(probabilities: torch.Tensor) -> torch.Tensor:
        """
        Calculate predictive entropy of a vote-share or probability matrix.

        Args:
            probabilities: Rows summing to one (B, C)

        Returns:
            torch.Tensor: Entropy values (B,)
        """
        # Zero shares contribute nothing
        logs = torch.log(torch.clamp(probabilities, min=1e-12))
        return -torch.sum(probabilities * logs, dim=1)

    @staticmethod
    def prediction_variance(ensemble: MeanModel, inputs: torch.Tensor) -> torch.Tensor:
        """
        Calculate the weighted variance of continuous sub-model outputs.

        Returns:
            torch.Tensor: Variance per example, averaged over output dimensions (B,)
        """
        mean = ensemble(inputs)
        variance = torch.zeros_like(mean)
        with torch.no_grad():
            for model, weight in zip(ensemble.models, ensemble.model_weights):
                variance += weight * (model(inputs) - mean) ** 2
        return (variance / ensemble.weight_sum).mean(dim=1)


def _hard_predictions(ensemble: MeanModel, inputs: torch.Tensor) -> torch.Tensor:
    predictions = []
    with torch.no_grad():
        for model in ensemble.models:
            outputs = model(inputs)
            if ensemble.sub_model_kind != LABEL:
                outputs = torch.argmax(outputs, dim=1)
            predictions.append(outputs.long())
    return torch.stack(predictions, dim=0)


def evaluate_ensemble_diversity(ensemble: MeanModel, dataset: LabeledData) -> Dict[str, float]:
    """
    Evaluate diversity metrics of the sub-models over a dataset.

    Continuous sub-models are compared by the argmax of their outputs.

    Args:
        ensemble: Ensemble with at least two models
        dataset: Data to evaluate on

    Returns:
        Dict with diversity metrics
    """
    num_models = ensemble.number_of_models()
    if num_models < 2:
        raise ValueError("Diversity needs at least two models")

    all_predictions = torch.cat([
        _hard_predictions(ensemble, dataset.batch(i)[0])
        for i in range(dataset.number_of_batches())
    ], dim=1)

    pairwise_disagreements = []
    for i in range(num_models):
        for j in range(i + 1, num_models):
            disagreement = (all_predictions[i] != all_predictions[j]).float().mean().item()
            pairwise_disagreements.append(disagreement)

    # Unweighted vote entropy per example
    prediction_entropy = []
    for sample_predictions in all_predictions.T:
        vote_probs = torch.bincount(sample_predictions).float() / num_models
        vote_probs = vote_probs[vote_probs > 0]
        prediction_entropy.append(-torch.sum(vote_probs * torch.log(vote_probs)).item())

    return {
        'mean_pairwise_disagreement': float(np.mean(pairwise_disagreements)),
        'prediction_entropy_mean': float(np.mean(prediction_entropy)),
        'prediction_entropy_std': float(np.std(prediction_entropy)),
        'max_disagreement': max(pairwise_disagreements),
        'min_disagreement': min(pairwise_disagreements)
    }
