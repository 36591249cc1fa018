"""
occam: entropy-minimizing attention networks on a small reverse-mode
autodiff engine.

Typical use::

    import numpy as np
    from occam import AttentionNetwork, TrainingConfig, make_clusters

    rng = np.random.default_rng(1)
    samples = make_clusters(rng, classes=3, per_class=8, width=4)
    net = AttentionNetwork(4, 24, rng=rng)
    result = net.fit(samples, TrainingConfig(iterations=1000))
"""

from .domain import (
    Function,
    ParameterSetUnavailableError,
    ShapeMismatchError,
    SliceBoundsError,
)
from .infrastructure import *
from .infrastructure import __all__ as _infrastructure_all
from .infrastructure.analysis import nearest_neighbor_agreement
from .infrastructure.data import make_clusters
from .infrastructure.module import load_parameters, load_parameters_, save_parameters
from .infrastructure.networks import (
    AttentionClassifier,
    AttentionNetwork,
    BatchAttentionNetwork,
    PositionalAttentionNetwork,
)
from .infrastructure.training import (
    History,
    IterationPlan,
    Sample,
    Trainer,
    TrainingConfig,
    TrainingResult,
    TrainingState,
)

__version__ = "0.1.0"

__all__ = list(_infrastructure_all) + [
    "AttentionClassifier",
    "AttentionNetwork",
    "BatchAttentionNetwork",
    "Function",
    "History",
    "IterationPlan",
    "ParameterSetUnavailableError",
    "PositionalAttentionNetwork",
    "Sample",
    "ShapeMismatchError",
    "SliceBoundsError",
    "Trainer",
    "TrainingConfig",
    "TrainingResult",
    "TrainingState",
    "load_parameters",
    "load_parameters_",
    "make_clusters",
    "nearest_neighbor_agreement",
    "save_parameters",
]
