from ._config import (
    IterationPlan,
    Sample,
    TrainingConfig,
    TrainingResult,
    TrainingState,
)
from ._history import History
from ._trainer import Trainer

__all__ = [
    History.__name__,
    IterationPlan.__name__,
    Sample.__name__,
    Trainer.__name__,
    TrainingConfig.__name__,
    TrainingResult.__name__,
    TrainingState.__name__,
]
