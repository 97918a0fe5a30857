from __future__ import annotations
import logging
from typing import Union, Any
from pathlib import Path
import pyarrow as pa
import narwhals as nw
from seqrules.core.connection import DuckDBConnection
from seqrules.core.naming import clean_names

logger = logging.getLogger(__name__)

ROW_COL = "_row"

def _read_file_source(conn: DuckDBConnection, source: Union[str, Path]) -> pa.Table:
    p = str(source)
    if p.endswith(".csv"): return conn.query(f"SELECT * FROM read_csv_auto('{p}')")
    if p.endswith(".parquet"): return conn.query(f"SELECT * FROM read_parquet('{p}')")
    raise ValueError("Unsupported file type")

def _to_frame(source: Any) -> nw.DataFrame:
    try: df = nw.from_native(source)
    except TypeError as e: raise ValueError(f"Unsupported source type: {type(source).__name__}") from e
    if isinstance(df, nw.LazyFrame): df = df.collect()
    return df

def _canonicalize(df: nw.DataFrame) -> nw.DataFrame:
    old = df.columns
    new = clean_names(old)
    return df.rename({o: n for o, n in zip(old, new) if o != n})

def load_events(conn: DuckDBConnection, source: Any, table_name: str = "events") -> int:
    """
    Register raw event records as ``table_name`` with canonical column names.

    An extra ``_row`` column keeps the 0-based input position of every record.
    """
    if isinstance(source, (str, Path)): source = _read_file_source(conn, source)
    df = _to_frame(source)
    if not df.columns: raise ValueError("Source has no columns")
    df = _canonicalize(df).with_row_index(ROW_COL)
    conn.register("_tmp_events", df.to_native())
    try:
        conn.execute(f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM _tmp_events")
    finally:
        conn.unregister("_tmp_events")
    count = conn.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]
    logger.info("Loaded %d records into '%s'", count, table_name)
    return count

def with_row_positions(conn: DuckDBConnection, table_name: str) -> str:
    """``table_name`` if it carries ``_row``, else a temp copy that does."""
    if ROW_COL in conn.columns(table_name): return table_name
    tmp = f"_{table_name}_rows"
    conn.execute(f"""
        CREATE OR REPLACE TEMP TABLE {tmp} AS
        SELECT *, row_number() OVER () - 1 AS {ROW_COL} FROM {table_name}
    """)
    return tmp

def save_rules(conn: DuckDBConnection, table: pa.Table, path: Union[str, Path]) -> int:
    """Write a decomposed rule table to a ``.csv`` or ``.parquet`` file."""
    p = str(path)
    if p.endswith(".csv"): options = "HEADER, DELIMITER ','"
    elif p.endswith(".parquet"): options = "FORMAT PARQUET"
    else: raise ValueError("Unsupported file type")
    conn.register("_tmp_rules", table)
    try:
        conn.execute(f"COPY (SELECT * FROM _tmp_rules) TO '{p}' ({options})")
    finally:
        conn.unregister("_tmp_rules")
    logger.info("Saved %d rules to %s", table.num_rows, p)
    return table.num_rows
