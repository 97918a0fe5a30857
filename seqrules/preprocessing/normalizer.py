"""
seqrules.preprocessing.normalizer — Temporal/session normalisation of raw events.

Resolves the user's session and timestamp fields, parses timestamps, orders
records by ``(session, event_time)`` (stable on ties) and adds ``time_diff``:
seconds since the previous event of the same session, null for the first.
"""
from __future__ import annotations
import logging
from typing import Any, Optional
import pyarrow as pa
from seqrules.core.connection import DuckDBConnection
from seqrules.core.ingestion import load_events, with_row_positions, ROW_COL
from seqrules.core.naming import resolve_field, quote
from seqrules.preprocessing.timestamps import timestamp_expr, truncate_expr, validate_precision, check_parsed

logger = logging.getLogger(__name__)

EVENT_TIME_COL = "event_time"
TIME_DIFF_COL = "time_diff"

class TemporalNormalizer:
    def __init__(
        self,
        conn: DuckDBConnection,
        session_col: str,
        timestamp_col: str,
        table_name: str = "events",
        precision: Optional[int] = None,
        output_table: str = "normalized_events",
    ):
        validate_precision(precision)
        self.conn = conn
        self.table_name = table_name
        self.session_col = session_col
        self.timestamp_col = timestamp_col
        self.precision = precision
        self.output_table = output_table
        self.last_sql_ = ""

    def _star(self, columns) -> str:
        clash = [quote(c) for c in (EVENT_TIME_COL, TIME_DIFF_COL) if c in columns]
        return f"* EXCLUDE ({', '.join(clash)})" if clash else "*"

    def _materialise(self, source: str, columns, session: str, ts_col: str):
        parsed = timestamp_expr(self.conn, source, ts_col)
        check_parsed(self.conn, source, ts_col, parsed, ROW_COL)

        self.last_sql_ = f"""
            CREATE OR REPLACE TABLE {self.output_table} AS
            WITH parsed AS (
                SELECT {self._star(columns)}, {truncate_expr(parsed, self.precision)} AS {EVENT_TIME_COL}
                FROM {source}
            )
            SELECT *,
                date_diff('microsecond', LAG({EVENT_TIME_COL}) OVER w, {EVENT_TIME_COL})::DOUBLE / 1000000 AS {TIME_DIFF_COL}
            FROM parsed
            WINDOW w AS (PARTITION BY {session} ORDER BY {EVENT_TIME_COL}, {ROW_COL})
            ORDER BY {session} NULLS LAST, {EVENT_TIME_COL}, {ROW_COL}
        """
        self.conn.execute(self.last_sql_)

    def fit(self) -> pa.Table:
        columns = self.conn.columns(self.table_name)
        session = quote(resolve_field(columns, self.session_col))
        ts_col = resolve_field(columns, self.timestamp_col)

        source = with_row_positions(self.conn, self.table_name)
        try:
            self._materialise(source, columns, session, ts_col)
        finally:
            if source != self.table_name: self.conn.drop_temp(source)

        result = self.conn.query(f"""
            SELECT * EXCLUDE ({ROW_COL}) FROM {self.output_table}
            ORDER BY {session} NULLS LAST, {EVENT_TIME_COL}, {ROW_COL}
        """)
        n_sessions = self.conn.execute(f"SELECT COUNT(DISTINCT {session}) FROM {self.output_table}").fetchone()[0]
        logger.info("Normalized %d records across %d sessions", result.num_rows, n_sessions)
        return result

def normalize(records: Any, session_key_field: str, timestamp_field: str, precision: Optional[int] = None) -> pa.Table:
    """
    Normalize a standalone record collection.

    ``records`` is any dataframe narwhals understands, or a CSV/Parquet path.
    The input is left untouched; a new ``pa.Table`` is returned.
    """
    with DuckDBConnection() as conn:
        load_events(conn, records)
        return TemporalNormalizer(conn, session_key_field, timestamp_field, precision=precision).fit()
