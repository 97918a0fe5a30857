from __future__ import annotations
from typing import Optional
import pyarrow as pa
from seqrules.core.connection import DuckDBConnection
from seqrules.core.naming import quote
from seqrules.errors import ParseError

# Tried after the plain ISO-8601 cast fails.
TIMESTAMP_FORMATS = [
    "%Y/%m/%d %H:%M:%S.%f",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d %H:%M",
    "%Y%m%d %H%M%S",
    "%d.%m.%Y %H:%M:%S",
]

# Trailing UTC offset after a time of day: Z, +hh, +hhmm or +hh:mm.
OFFSET_PATTERN = r"\d{2}:\d{2}(:\d{2}(\.\d+)?)?\s*([Zz]|[+-]\d{2}(:?\d{2})?)$"

def _column_type(conn: DuckDBConnection, table_name: str, col: str) -> pa.DataType:
    return conn.query(f"SELECT {quote(col)} FROM {table_name} LIMIT 0").schema.field(0).type

def timestamp_expr(conn: DuckDBConnection, table_name: str, col: str) -> str:
    """SQL expression turning ``col`` into a naive ``TIMESTAMP`` (NULL when unparseable)."""
    q = quote(col)
    dtype = _column_type(conn, table_name, col)
    if pa.types.is_timestamp(dtype):
        return f"timezone('UTC', {q})" if dtype.tz else f"CAST({q} AS TIMESTAMP)"
    if pa.types.is_date(dtype):
        return f"CAST({q} AS TIMESTAMP)"
    text = f"trim(CAST({q} AS VARCHAR))"
    formats = ", ".join(f"'{f}'" for f in TIMESTAMP_FORMATS)
    naive = f"COALESCE(TRY_CAST({text} AS TIMESTAMP), try_strptime({text}, [{formats}]))"
    # Offset-qualified text is an absolute instant; bring it to UTC before dropping the zone.
    return (f"CASE WHEN regexp_matches({text}, '{OFFSET_PATTERN}') "
            f"THEN timezone('UTC', TRY_CAST({text} AS TIMESTAMPTZ)) ELSE {naive} END")

def truncate_expr(expr: str, precision: Optional[int]) -> str:
    """Keep ``precision`` fractional-second digits of a TIMESTAMP expression."""
    if precision is None or precision == 6: return expr
    return f"time_bucket(INTERVAL '{10 ** (6 - precision)} microseconds', {expr})"

def validate_precision(precision: Optional[int]):
    if precision is not None and not (0 <= precision <= 6):
        raise ValueError("precision must be an integer in [0, 6]")

def check_parsed(conn: DuckDBConnection, table_name: str, col: str, expr: str, row_col: str = "_row"):
    """Raise ``ParseError`` for the first record whose timestamp is null or unparseable."""
    bad = conn.execute(f"""
        SELECT {row_col}, {quote(col)} FROM {table_name}
        WHERE ({expr}) IS NULL
        ORDER BY {row_col}
        LIMIT 1
    """).fetchone()
    if bad: raise ParseError(int(bad[0]), bad[1], col)
