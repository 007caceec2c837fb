"""
Factory function for loss functions.
Provides a unified interface for creating losses by name.
"""

from .base_losses import AbstractLoss, SquaredLoss
from .classification_losses import CrossEntropyLoss, FocalLoss, ZeroOneLoss


LOSS_REGISTRY = {
    'squared': SquaredLoss,
    'cross_entropy': CrossEntropyLoss,
    'focal': FocalLoss,
    'zero_one': ZeroOneLoss
}


def create_loss_function(loss_type: str = 'squared', **kwargs) -> AbstractLoss:
    """
    Factory function to create different loss functions.

    Args:
        loss_type: Type of loss ('squared', 'cross_entropy', 'focal', 'zero_one')
        **kwargs: Additional arguments for loss function

    Returns:
        AbstractLoss: Initialized loss function
    """
    if loss_type not in LOSS_REGISTRY:
        raise ValueError(f"Unknown loss type: {loss_type}. Available: {list(LOSS_REGISTRY.keys())}")

    return LOSS_REGISTRY[loss_type](**kwargs)
