"""
Loss functions consumed by objective functions.

Mathematical Foundation:
- Squared loss: L(y, f) = ||f - y||²
- Cross entropy: L(y, f) = log Σ_c exp(f_c) - f_y
- Focal loss for class imbalance (Lin et al., 2017)
- Zero-one loss: L(y, f) = [argmax f ≠ y]

Every loss reports the summed batch loss and, where differentiable, the
per-example gradient with respect to the model output.
"""

# Import base classes
from .base_losses import AbstractLoss, SquaredLoss

# Import classification losses
from .classification_losses import (
    CrossEntropyLoss,
    FocalLoss,
    ZeroOneLoss
)

# Import factory
from .loss_factory import create_loss_function, LOSS_REGISTRY

# Define exports
__all__ = [
    # Base classes
    'AbstractLoss',
    'SquaredLoss',

    # Classification losses
    'CrossEntropyLoss',
    'FocalLoss',
    'ZeroOneLoss',

    # Factory
    'create_loss_function',
    'LOSS_REGISTRY'
]
