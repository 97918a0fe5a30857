from __future__ import annotations
import logging
import pyarrow as pa
from typing import Optional
from seqrules.core.connection import DuckDBConnection
from seqrules.mining.parameters import MiningParameters
from seqrules.preprocessing.encoder import EncodedTransactionSet

logger = logging.getLogger(__name__)

RULE_SCHEMA = pa.schema([("rule", pa.string()), ("support", pa.float64()), ("confidence", pa.float64()), ("lift", pa.float64())])

class SequentialRuleMiner:
    """
    Reference engine for two-item sequential rules ``<{a}> => <{b}>``.

    ``a`` must occur at a smaller ``event_id`` than ``b`` in the same sequence,
    optionally within ``min_gap <= event_id(b) - event_id(a) <= max_gap``.
    """
    def __init__(
        self,
        conn: DuckDBConnection,
        min_support: float = 0.2,
        min_confidence: float = 0.5,
        max_length: Optional[int] = None,
        min_gap: Optional[int] = None,
        max_gap: Optional[int] = None,
    ):
        self.params = MiningParameters(min_support, min_confidence, max_length, min_gap, max_gap)
        self.conn = conn
        self.last_sql_ = ""

    def _gap_filter(self) -> str:
        f = ""
        if self.params.min_gap is not None: f += f" AND b.event_id - a.event_id >= {self.params.min_gap}"
        if self.params.max_gap is not None: f += f" AND b.event_id - a.event_id <= {self.params.max_gap}"
        return f

    def fit(self, transactions: EncodedTransactionSet) -> pa.Table:
        if self.params.max_length is not None and self.params.max_length < 2:
            return RULE_SCHEMA.empty_table()
        self.conn.register("_tx", transactions.transactions)
        try:
            return self._mine()
        finally:
            self.conn.unregister("_tx")
            self.conn.drop_temp("_seq1")

    def _mine(self) -> pa.Table:
        total_n = self.conn.execute("SELECT COUNT(DISTINCT sequence_id) FROM _tx").fetchone()[0]
        if total_n == 0: return RULE_SCHEMA.empty_table()
        p = self.params

        self.conn.execute(f"""
            CREATE OR REPLACE TEMP TABLE _seq1 AS
            SELECT item, COUNT(DISTINCT sequence_id)::DOUBLE / {total_n} AS support
            FROM _tx
            GROUP BY 1
            HAVING support >= {p.min_support}
        """)

        self.last_sql_ = f"""
        WITH pairs AS (
            SELECT a.item AS lhs, b.item AS rhs, COUNT(DISTINCT a.sequence_id)::DOUBLE / {total_n} AS support
            FROM _tx a
            JOIN _tx b ON a.sequence_id = b.sequence_id AND b.event_id > a.event_id {self._gap_filter()}
            WHERE a.item IN (SELECT item FROM _seq1)
              AND b.item IN (SELECT item FROM _seq1)
            GROUP BY 1, 2
            HAVING support >= {p.min_support}
        ), scored AS (
            SELECT
                '<{{' || pairs.lhs || '}}> => <{{' || pairs.rhs || '}}>' AS rule,
                pairs.support AS support,
                pairs.support / s1.support AS confidence,
                pairs.support / s1.support / s2.support AS lift
            FROM pairs
            JOIN _seq1 s1 ON pairs.lhs = s1.item
            JOIN _seq1 s2 ON pairs.rhs = s2.item
        )
        SELECT rule, support, confidence, lift FROM scored
        WHERE confidence >= {p.min_confidence}
        ORDER BY lift DESC, support DESC, rule
        """
        rules = self.conn.query(self.last_sql_)
        logger.info("Mined %d sequential rules from %d sequences", rules.num_rows, total_n)
        return rules

def mine_rules(transactions: EncodedTransactionSet, conn: Optional[DuckDBConnection] = None, **params) -> pa.Table:
    """``engine(transactions, **params)`` entry point for the reference miner."""
    if conn is not None: return SequentialRuleMiner(conn, **params).fit(transactions)
    with DuckDBConnection() as own:
        return SequentialRuleMiner(own, **params).fit(transactions)
