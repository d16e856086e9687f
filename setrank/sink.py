"""Result sink: tab-separated text or Parquet, always overwritten atomically."""
from __future__ import annotations
import logging
import os
import tempfile
from pathlib import Path
from typing import Union
import pyarrow as pa
import pyarrow.parquet as pq

logger = logging.getLogger(__name__)

def format_row(row: dict) -> str:
    return f"{row['items']}\t{row['score']!r}\t{row['overlap_count']}\n"

def _write_tsv(table: pa.Table, fh):
    for batch in table.to_batches():
        for row in batch.to_pylist():
            fh.write(format_row(row))

def write_results(table: pa.Table, path: Union[str, Path]) -> Path:
    """Write ``table`` to ``path``; a failed write leaves the previous file in place."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        if path.suffix.lower() == ".parquet":
            os.close(fd)
            pq.write_table(table, tmp)
        else:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
                _write_tsv(table, fh)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp): os.unlink(tmp)
        raise
    logger.info("Wrote %d recommendations to %s", table.num_rows, path)
    return path
