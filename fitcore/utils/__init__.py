"""
Shared configuration for fitcore.
"""

from .config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MODEL_WEIGHT,
    LOSS_HISTORY_SIZE,
    FINITE_DIFFERENCE_EPSILON,
    CONTINUOUS,
    LABEL,
    VALUE_KINDS,
    configure_logging
)

__all__ = [
    'DEFAULT_BATCH_SIZE',
    'DEFAULT_MODEL_WEIGHT',
    'LOSS_HISTORY_SIZE',
    'FINITE_DIFFERENCE_EPSILON',
    'CONTINUOUS',
    'LABEL',
    'VALUE_KINDS',
    'configure_logging'
]
