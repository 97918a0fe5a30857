"""
seqrules.datasets — Synthetic interaction logs.

Each generator produces a ready-to-use ``pd.DataFrame`` with documented
columns and known ordering patterns.

Domains
-------
- **clickstream**: Web funnel sessions (small, hand-written) and a Markov
  chain generator for larger runs
"""

from .clickstream import generate_clickstream_data, generate_large_clickstream

__all__ = [
    "generate_clickstream_data",
    "generate_large_clickstream",
]
