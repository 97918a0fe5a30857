from .rules import Rule, RuleDecomposer, decompose, top_k, drop_malformed, split_rule

__all__ = ["Rule", "RuleDecomposer", "decompose", "top_k", "drop_malformed", "split_rule"]
