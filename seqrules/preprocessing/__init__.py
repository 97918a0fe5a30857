from .normalizer import TemporalNormalizer, normalize
from .encoder import SequenceEncoder, EncodedTransactionSet, encode, sanitize_symbol

__all__ = [
    "TemporalNormalizer",
    "normalize",
    "SequenceEncoder",
    "EncodedTransactionSet",
    "encode",
    "sanitize_symbol",
]
