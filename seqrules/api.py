from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union, Any, Callable
import pyarrow as pa
from seqrules.core.connection import DuckDBConnection
from seqrules.core.ingestion import load_events, save_rules
from seqrules.mining.parameters import MiningParameters
from seqrules.mining.sequences import SequentialRuleMiner
from seqrules.preprocessing.encoder import SequenceEncoder, EncodedTransactionSet
from seqrules.preprocessing.normalizer import TemporalNormalizer, EVENT_TIME_COL
from seqrules.postprocessing.rules import decompose, top_k

logger = logging.getLogger(__name__)

class SeqRules:
    """Pipeline from raw event logs to ranked sequential rules."""

    def __init__(
        self,
        database: Union[str, Path] = ":memory:",
        memory_limit: Optional[str] = None,
        threads: Optional[int] = None,
    ) -> None:
        self.conn = DuckDBConnection(database=database, memory_limit=memory_limit, threads=threads)
        self.table_name = "events"
        self.normalized_table = "normalized_events"
        self._normalized, self._transactions, self._rules, self._decomposed = None, None, None, None

    def load(self, data: Any) -> SeqRules:
        self.load_events(data)
        return self

    def load_events(self, data: Any) -> int:
        self._normalized, self._transactions, self._rules, self._decomposed = None, None, None, None
        return load_events(self.conn, data, table_name=self.table_name)

    def normalize(self, session_col: str, timestamp_col: str, precision: Optional[int] = None) -> pa.Table:
        self._normalized = TemporalNormalizer(
            self.conn, session_col, timestamp_col,
            table_name=self.table_name, precision=precision, output_table=self.normalized_table,
        ).fit()
        return self._normalized

    def encode(self, session_col: str, action_col: str, timestamp_col: str = EVENT_TIME_COL) -> EncodedTransactionSet:
        source = self.normalized_table if self._normalized is not None else self.table_name
        self._transactions = SequenceEncoder(self.conn, session_col, action_col, timestamp_col, table_name=source).fit()
        return self._transactions

    def mine(self, engine: Optional[Callable[..., Any]] = None, **params) -> Any:
        """
        Run a sequential-pattern engine over the encoded transactions.

        ``engine`` is called as ``engine(transactions, **params)``; without one
        the built-in two-item ``SequentialRuleMiner`` is used.
        """
        if self._transactions is None: raise RuntimeError("Call encode() first.")
        if engine is None:
            self._rules = SequentialRuleMiner(self.conn, **params).fit(self._transactions)
        else:
            self._rules = engine(self._transactions, **MiningParameters(**params).as_dict())
        return self._rules

    def decompose(self, rules: Any = None) -> pa.Table:
        if rules is None:
            if self._rules is None: raise RuntimeError("Call mine() first.")
            rules = self._rules
        self._decomposed = decompose(rules)
        return self._decomposed

    def top_k(self, by: str = "lift", k: int = 5) -> pa.Table:
        if self._decomposed is None: raise RuntimeError("Call decompose() first.")
        return top_k(self._decomposed, by=by, k=k)

    def save(self, path: Union[str, Path]) -> int:
        if self._decomposed is None: raise RuntimeError("Call decompose() first.")
        return save_rules(self.conn, self._decomposed, path)

    def run(
        self,
        data: Any,
        session_col: str,
        action_col: str,
        timestamp_col: str,
        precision: Optional[int] = None,
        engine: Optional[Callable[..., Any]] = None,
        **params,
    ) -> pa.Table:
        """load → normalize → encode → mine → decompose in one call."""
        self.load_events(data)
        self.normalize(session_col, timestamp_col, precision=precision)
        self.encode(session_col, action_col)
        self.mine(engine, **params)
        table = self.decompose()
        logger.info("Pipeline produced %d rules", table.num_rows)
        return table

    @property
    def transactions(self) -> Optional[EncodedTransactionSet]: return self._transactions
    @property
    def rules(self) -> Optional[pa.Table]: return self._decomposed

    def sql(self, query: str) -> pa.Table: return self.conn.query(query)
    def close(self): self.conn.close()
    def __enter__(self): return self
    def __exit__(self, *_): self.close()
    def __repr__(self) -> str: return f"SeqRules(database={self.conn._database!r})"
