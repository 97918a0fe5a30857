
"""
Plugging a different sequential-pattern engine into the pipeline.

Any callable ``engine(transactions, **params)`` that returns rule strings
of the form "<lhs> => <rhs>" with support/confidence/lift works.
"""

from seqrules import SeqRules, Rule
from seqrules.datasets import generate_large_clickstream


def last_step_engine(transactions, min_support=0.2, min_confidence=0.5, **_):
    """Toy engine: how often does each action end a session?"""
    sequences = transactions.to_sequences()
    n = len(sequences)
    ends, seen = {}, {}
    for seq in sequences:
        for item in set(seq):
            seen[item] = seen.get(item, 0) + 1
        ends[seq[-1]] = ends.get(seq[-1], 0) + 1
    rules = []
    for item, count in ends.items():
        support, confidence = count / n, count / seen[item]
        if support >= min_support and confidence >= min_confidence:
            rules.append(Rule(f"<{{{item}}}> => <END>", support, confidence, confidence))
    return rules


with SeqRules() as db:
    db.run(
        generate_large_clickstream(n_sessions=500),
        session_col="session_id", action_col="action", timestamp_col="timestamp",
        engine=last_step_engine, min_support=0.05, min_confidence=0.1,
    )
    print(db.top_k(by="support", k=3).to_pandas())
