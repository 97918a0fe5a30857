import logging

from .api import SeqRules
from .core.connection import DuckDBConnection
from .core.ingestion import load_events, save_rules
from .core.naming import clean_name, clean_names
from .errors import (
    SeqRulesError,
    ConfigurationError,
    ParseError,
    SequenceInvariantError,
    MalformedRuleWarning,
)
from .preprocessing import (
    TemporalNormalizer,
    SequenceEncoder,
    EncodedTransactionSet,
    normalize,
    encode,
    sanitize_symbol,
)
from .mining.parameters import MiningParameters
from .mining.sequences import SequentialRuleMiner, mine_rules
from .postprocessing import Rule, RuleDecomposer, decompose, top_k, drop_malformed
from .datasets import generate_clickstream_data, generate_large_clickstream

logging.getLogger(__name__).addHandler(logging.NullHandler())

def load(data, **kwargs) -> SeqRules:
    engine = SeqRules(**kwargs)
    engine.load(data)
    return engine

def connect(database=":memory:", **kwargs) -> SeqRules:
    return SeqRules(database=database, **kwargs)

__all__ = [
    "SeqRules",
    "load",
    "connect",
    "DuckDBConnection",
    "load_events",
    "save_rules",
    "clean_name",
    "clean_names",
    # Errors
    "SeqRulesError",
    "ConfigurationError",
    "ParseError",
    "SequenceInvariantError",
    "MalformedRuleWarning",
    # Pipeline stages
    "TemporalNormalizer",
    "SequenceEncoder",
    "EncodedTransactionSet",
    "normalize",
    "encode",
    "sanitize_symbol",
    "MiningParameters",
    "SequentialRuleMiner",
    "mine_rules",
    "Rule",
    "RuleDecomposer",
    "decompose",
    "top_k",
    "drop_malformed",
    # Datasets
    "generate_clickstream_data",
    "generate_large_clickstream",
]
