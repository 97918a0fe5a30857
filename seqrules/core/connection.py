from __future__ import annotations
import duckdb
from pathlib import Path
from typing import Union, Optional, Any, List
import pyarrow as pa

class DuckDBConnection:
    """Wrapper for the DuckDB connection a pipeline run works in."""
    def __init__(
        self,
        database: Union[str, Path] = ":memory:",
        memory_limit: Optional[str] = None,
        threads: Optional[int] = None,
    ):
        self._database = str(database)
        self.conn = duckdb.connect(self._database)

        if memory_limit:
            self.conn.execute(f"SET memory_limit='{memory_limit}'")
        if threads:
            self.conn.execute(f"SET threads={threads}")
        # Stable tie-breaking relies on scans returning rows in insertion order.
        self.conn.execute("SET preserve_insertion_order=true")

    def execute(self, query: str, params: Optional[Union[list, dict]] = None) -> duckdb.DuckDBPyConnection:
        return self.conn.execute(query, params)

    def query(self, query: str, params: Optional[Union[list, dict]] = None) -> pa.Table:
        res = self.execute(query, params)
        table = res.arrow()
        if hasattr(table, "read_all"):
             return table.read_all()
        return table

    def table_exists(self, table_name: str) -> bool:
        try:
            self.conn.execute(f"SELECT 1 FROM {table_name} LIMIT 0")
            return True
        except duckdb.Error:
            return False

    def columns(self, table_name: str) -> List[str]:
        return self.query(f"SELECT * FROM {table_name} LIMIT 0").column_names

    def register(self, name: str, df: Any):
        self.conn.register(name, df)

    def unregister(self, name: str):
        self.conn.unregister(name)

    def drop_temp(self, *table_names: str):
        for name in table_names:
            self.conn.execute(f"DROP TABLE IF EXISTS temp.main.{name}")

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()

    def __repr__(self) -> str:
        return f"DuckDBConnection(database={self._database!r})"
