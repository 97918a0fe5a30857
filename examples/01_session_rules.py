
"""
Example of mining "A often precedes B" rules from a raw interaction log.
Normalize -> encode -> mine -> decompose, then rank by lift.
"""

import logging
from seqrules import SeqRules
from seqrules.datasets import generate_clickstream_data

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

# Column names as they appear in the export; they are matched after
# canonicalization, so "DateTime" finds the "date_time" column.
session_id_col = "Username"
action_col = "Action"
datetime_col = "DateTime"

# Engine parameters
# min_support: fraction of sessions a sequence must appear in
# min_confidence: probability that B follows A given A occurred
# max_gap / min_gap: allowed event_id distance between A and B
params = dict(min_support=0.2, min_confidence=0.5, max_gap=2, min_gap=1)

data = generate_clickstream_data()

with SeqRules() as db:
    db.load(data)

    normalized = db.normalize(session_id_col, datetime_col)
    print(normalized.select(["username", "action", "event_time", "time_diff"]).to_pandas())

    transactions = db.encode(session_id_col, action_col)
    print(f"{transactions.n_sequences} sequences, symbols: {transactions.symbols}")

    db.mine(**params)
    db.decompose()
    db.save("sequence_rules.csv")

    print("Top 5 rules by lift:")
    print(db.top_k(by="lift", k=5).to_pandas())
