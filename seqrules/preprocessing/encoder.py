"""
seqrules.preprocessing.encoder — Session-scoped transaction encoding.

Turns normalized records into the ``(sequence_id, event_id, item)`` layout
sequential-pattern engines such as cSPADE expect:

- ``sequence_id``: dense 1-based id per distinct session key, in key order.
- ``event_id``: 1-based contiguous ordinal inside each sequence, by time.
- ``item``: the action label with whitespace runs replaced by ``_``.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple
import pyarrow as pa
from seqrules.core.connection import DuckDBConnection
from seqrules.core.ingestion import load_events, with_row_positions, ROW_COL
from seqrules.core.naming import resolve_field, quote
from seqrules.errors import SequenceInvariantError
from seqrules.preprocessing.normalizer import EVENT_TIME_COL
from seqrules.preprocessing.timestamps import timestamp_expr, check_parsed

logger = logging.getLogger(__name__)

# Same character class in Python and in DuckDB's RE2.
WHITESPACE_PATTERN = r"[ \t\n\v\f\r]+"
SYMBOL_JOINER = "_"
_WHITESPACE = re.compile(WHITESPACE_PATTERN)

def sanitize_symbol(label: Any) -> str:
    return _WHITESPACE.sub(SYMBOL_JOINER, str(label))


@dataclass(frozen=True)
class EncodedTransactionSet:
    """Mining-ready transactions plus the id mappings used to build them."""
    transactions: pa.Table
    sessions: pa.Table
    symbols: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.symbols, MappingProxyType):
            object.__setattr__(self, "symbols", MappingProxyType(dict(self.symbols)))

    def __len__(self) -> int:
        return self.transactions.num_rows

    @property
    def n_sequences(self) -> int:
        return self.sessions.num_rows

    def as_dict(self) -> Dict[int, List[Tuple[int, str]]]:
        out: Dict[int, List[Tuple[int, str]]] = {}
        for row in self.transactions.to_pylist():
            out.setdefault(row["sequence_id"], []).append((row["event_id"], row["item"]))
        return out

    def to_sequences(self) -> List[List[str]]:
        """Item lists ordered by ``sequence_id``, for list-of-lists engines."""
        return [[item for _, item in events] for _, events in sorted(self.as_dict().items())]

    def sequence_id_of(self, key: Any) -> int:
        for row in self.sessions.to_pylist():
            if row["session_key"] == key: return row["sequence_id"]
        raise KeyError(key)


class SequenceEncoder:
    def __init__(
        self,
        conn: DuckDBConnection,
        session_col: str,
        action_col: str,
        timestamp_col: str = EVENT_TIME_COL,
        table_name: str = "normalized_events",
    ):
        self.conn = conn
        self.table_name = table_name
        self.session_col = session_col
        self.action_col = action_col
        self.timestamp_col = timestamp_col
        self.last_sql_ = ""

    def _drop_null_actions(self, source: str, action: str):
        n = self.conn.execute(f"SELECT COUNT(*) FROM {source} WHERE {action} IS NULL").fetchone()[0]
        if n: logger.warning("Dropping %d records with a null action label", n)

    def fit(self) -> EncodedTransactionSet:
        columns = self.conn.columns(self.table_name)
        session = quote(resolve_field(columns, self.session_col))
        action = quote(resolve_field(columns, self.action_col))
        ts_col = resolve_field(columns, self.timestamp_col)

        source = with_row_positions(self.conn, self.table_name)
        try:
            return self._encode(source, session, action, ts_col)
        finally:
            self.conn.drop_temp("_encoded")
            if source != self.table_name: self.conn.drop_temp(source)

    def _encode(self, source: str, session: str, action: str, ts_col: str) -> EncodedTransactionSet:
        parsed = timestamp_expr(self.conn, source, ts_col)
        check_parsed(self.conn, source, ts_col, parsed, ROW_COL)
        self._drop_null_actions(source, action)

        # Sequence ids are ranked over the full key set before any per-session numbering.
        self.last_sql_ = f"""
            CREATE OR REPLACE TEMP TABLE _encoded AS
            WITH src AS (
                SELECT {session} AS session_key, {parsed} AS ts, {ROW_COL} AS pos,
                       regexp_replace(CAST({action} AS VARCHAR), '{WHITESPACE_PATTERN}', '{SYMBOL_JOINER}', 'g') AS item
                FROM {source}
                WHERE {action} IS NOT NULL
            ), keyed AS (
                SELECT *, DENSE_RANK() OVER (ORDER BY session_key NULLS LAST) AS sequence_id FROM src
            )
            SELECT session_key, sequence_id,
                   ROW_NUMBER() OVER (PARTITION BY sequence_id ORDER BY ts, pos) AS event_id,
                   item
            FROM keyed
        """
        self.conn.execute(self.last_sql_)
        verify_encoding(self.conn, "_encoded")

        transactions = self.conn.query("""
            SELECT sequence_id::BIGINT AS sequence_id, event_id::BIGINT AS event_id, item,
                   DENSE_RANK() OVER (ORDER BY item)::BIGINT AS item_code
            FROM _encoded
            ORDER BY sequence_id, event_id
        """)
        sessions = self.conn.query("""
            SELECT DISTINCT session_key, sequence_id::BIGINT AS sequence_id
            FROM _encoded ORDER BY sequence_id
        """)
        symbols = dict(zip(transactions.column("item").to_pylist(), transactions.column("item_code").to_pylist()))
        logger.info("Encoded %d events into %d sequences over %d symbols",
                    transactions.num_rows, sessions.num_rows, len(symbols))
        return EncodedTransactionSet(transactions, sessions, dict(sorted(symbols.items(), key=lambda kv: kv[1])))

def verify_encoding(conn: DuckDBConnection, table_name: str):
    """Fail hard if ``table_name`` breaks the sequence/event numbering invariants."""
    gaps = conn.execute(f"""
        SELECT sequence_id FROM {table_name}
        GROUP BY sequence_id
        HAVING MIN(event_id) != 1 OR MAX(event_id) != COUNT(*) OR COUNT(DISTINCT event_id) != COUNT(*)
        ORDER BY sequence_id LIMIT 1
    """).fetchone()
    if gaps:
        raise SequenceInvariantError(f"Sequence {gaps[0]} does not number its events 1..n")

    n_ids, max_id, n_keys, n_pairs = conn.execute(f"""
        SELECT COUNT(DISTINCT sequence_id), COALESCE(MAX(sequence_id), 0),
               COUNT(DISTINCT session_key) + MAX(CASE WHEN session_key IS NULL THEN 1 ELSE 0 END),
               (SELECT COUNT(*) FROM (SELECT DISTINCT session_key, sequence_id FROM {table_name}))
        FROM {table_name}
    """).fetchone()
    if n_ids != max_id:
        raise SequenceInvariantError(f"Sequence ids are not dense: {n_ids} ids, max {max_id}")
    if (n_keys or 0) != n_ids or n_pairs != n_ids:
        raise SequenceInvariantError("Session keys and sequence ids are not in one-to-one correspondence")

def encode(
    normalized_records: Any,
    session_key_field: str,
    action_field: str,
    timestamp_field: str = EVENT_TIME_COL,
) -> EncodedTransactionSet:
    """Encode a standalone record collection (dataframe or CSV/Parquet path)."""
    with DuckDBConnection() as conn:
        load_events(conn, normalized_records, table_name="normalized_events")
        return SequenceEncoder(conn, session_key_field, action_field, timestamp_field).fit()
