# Configuration for fitcore objective evaluation and ensembles

import logging
import os

# Dataset Configuration
DEFAULT_BATCH_SIZE = 256

# Loss Configuration
LOSS_HISTORY_SIZE = 1000  # most recent forward() values kept per loss

# Ensemble Configuration
DEFAULT_MODEL_WEIGHT = 1.0

# Kinds of values a dataset label or a model output can hold
CONTINUOUS = 'continuous'  # real-valued vectors
LABEL = 'label'            # class indices
VALUE_KINDS = (CONTINUOUS, LABEL)

# Derivative Check Configuration
FINITE_DIFFERENCE_EPSILON = 1e-6

# Logging Configuration
LOG_LEVEL = os.environ.get('FITCORE_LOG_LEVEL', 'WARNING')
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'


def configure_logging(level: str = LOG_LEVEL):
    """Configure root logging for scripts using fitcore. Never called on import."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
