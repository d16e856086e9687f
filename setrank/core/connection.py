from __future__ import annotations
import logging
import duckdb
from pathlib import Path
from typing import Union, Optional, Any
import pyarrow as pa

logger = logging.getLogger(__name__)

class DuckDBConnection:
    """Wrapper for the DuckDB connection that holds the corpus and the broadcast profile."""
    def __init__(
        self,
        database: Union[str, Path] = ":memory:",
        memory_limit: Optional[str] = None,
        threads: Optional[int] = None,
    ):
        self._database = str(database)
        self.conn = duckdb.connect(self._database)
        logger.debug("Opened DuckDB database %s", self._database)

        if memory_limit:
            self.conn.execute(f"SET memory_limit='{memory_limit}'")
        if threads:
            self.conn.execute(f"SET threads={threads}")

    def execute(self, query: str, params: Optional[Union[list, dict]] = None) -> duckdb.DuckDBPyConnection:
        return self.conn.execute(query, params)

    def query(self, query: str, params: Optional[Union[list, dict]] = None) -> pa.Table:
        table = self.execute(query, params).arrow()
        if hasattr(table, "read_all"):
            return table.read_all()
        return table

    def stream(self, query: str, batch_size: int = 10_000) -> pa.RecordBatchReader:
        return self.execute(query).fetch_record_batch(batch_size)

    def table_exists(self, table_name: str) -> bool:
        try:
            self.conn.execute(f"SELECT 1 FROM {table_name} LIMIT 0")
            return True
        except duckdb.Error:
            return False

    def count(self, table_name: str) -> int:
        return self.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]

    def register(self, name: str, df: Any):
        self.conn.register(name, df)

    def unregister(self, name: str):
        self.conn.unregister(name)

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()

    def __repr__(self) -> str:
        return f"DuckDBConnection(database={self._database!r})"
