"""
Parametric models, losses and ensembles.
"""

from .base_model import AbstractModel
from .linear_model import LinearModel, LinearClassifier

__all__ = [
    'AbstractModel',
    'LinearModel',
    'LinearClassifier'
]
