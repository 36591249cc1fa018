from ._attention import AttentionNetwork
from ._batch import BatchAttentionNetwork
from ._classifier import AttentionClassifier, one_hot
from ._positional import PositionalAttentionNetwork

__all__ = [
    AttentionClassifier.__name__,
    AttentionNetwork.__name__,
    BatchAttentionNetwork.__name__,
    PositionalAttentionNetwork.__name__,
    one_hot.__name__,
]
