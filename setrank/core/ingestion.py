"""
Corpus loader and profile builder.

Raw text inputs are parsed line by line into ``ParseResult`` objects. Failed
lines are logged and skipped; they never interrupt the surrounding sequence.
Whole-source failures (missing file, unreadable format, a profile with no
usable line) raise ``SourceError``.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import duckdb
import pyarrow as pa
import narwhals as nw
from setrank.core.connection import DuckDBConnection
from setrank.core.records import DEFAULT_ITEM_SEP, ItemSetRecord, OwnedItemProfile, ParseResult
from setrank.errors import ProfileFormatError, RecordFormatError, SourceError

logger = logging.getLogger(__name__)

ITEMSET_SCHEMA = pa.schema([("seq", pa.int64()), ("items", pa.string()), ("support", pa.float64()), ("win_ratio", pa.float64())])
PROFILE_SCHEMA = pa.schema([("item_id", pa.string()), ("count", pa.int64())])
PROFILE_FIELDS = 5
TEXT_SUFFIXES = (".tsv", ".txt", ".tab", "")

# ---------------------------------------------------------------------------
# Line parsers
# ---------------------------------------------------------------------------

def parse_itemset_line(line: str, field_sep: str = "\t", item_sep: str = DEFAULT_ITEM_SEP, line_no: int = 0) -> ParseResult:
    """Parse ``itemsBlob <sep> support <sep> winRatio``."""
    raw = line.rstrip("\r\n")
    fields = raw.split(field_sep)
    try:
        if len(fields) < 3: raise RecordFormatError(f"expected 3 fields, got {len(fields)}")
        try: support, win_ratio = float(fields[1]), float(fields[2])
        except ValueError as e: raise RecordFormatError(str(e)) from e
        return ParseResult(ItemSetRecord.from_blob(fields[0], support, win_ratio, item_sep), line_no=line_no, line=raw)
    except RecordFormatError as e:
        return ParseResult(error=e, line_no=line_no, line=raw)

def _split_profile_fields(line: str, field_sep: Optional[str]) -> List[str]:
    if field_sep is not None: return line.split(field_sep)
    return line.split("\t") if "\t" in line else line.split("|")

def parse_profile_line(
    line: str,
    field_sep: Optional[str] = None,
    item_sep: str = DEFAULT_ITEM_SEP,
    count_sep: str = "$$",
    line_no: int = 0,
) -> ParseResult:
    """
    Parse ``player, eventResult, event, archetype, cards`` where ``cards`` is a
    list of ``count$$itemId`` tokens. The value is a list of ``(item_id, count)``.
    """
    raw = line.rstrip("\r\n")
    fields = _split_profile_fields(raw, field_sep)
    try:
        if len(fields) < PROFILE_FIELDS: raise ProfileFormatError(f"expected {PROFILE_FIELDS} fields, got {len(fields)}")
        pairs = []
        for term in fields[4].split(item_sep):
            parts = term.split(count_sep)
            if len(parts) != 2 or not parts[1]: raise ProfileFormatError(f"bad card token {term!r}")
            try: cnt = int(parts[0])
            except ValueError as e: raise ProfileFormatError(f"bad count in {term!r}") from e
            if cnt < 0: raise ProfileFormatError(f"negative count in {term!r}")
            pairs.append((parts[1], cnt))
        return ParseResult(pairs, line_no=line_no, line=raw)
    except ProfileFormatError as e:
        return ParseResult(error=e, line_no=line_no, line=raw)

def _decode(line: Union[str, bytes], line_no: int) -> Union[str, ParseResult]:
    if isinstance(line, str): return line
    try: return line.decode("utf-8")
    except UnicodeDecodeError as e:
        return ParseResult(error=e, line_no=line_no, line=line.decode("utf-8", errors="replace").rstrip("\r\n"))

def iter_parsed(lines: Iterable[Union[str, bytes]], parser: Callable[..., ParseResult], **kwargs) -> Iterator[ParseResult]:
    """Lazily parse ``lines``; blank lines are ignored and failures (undecodable bytes included) are logged as warnings."""
    for line_no, line in enumerate(lines, start=1):
        line = _decode(line, line_no)
        if isinstance(line, ParseResult): res = line
        elif not line.strip(): continue
        else: res = parser(line, line_no=line_no, **kwargs)
        if not res.ok:
            logger.warning("warning, format problem on line %d (%s): %r", line_no, res.error, res.line)
        yield res

def successes(results: Iterable[ParseResult]) -> Iterator[Any]:
    return (r.value for r in results if r.ok)

def _read_lines(path: Path) -> Iterator[bytes]:
    try: fh = path.open("rb")
    except OSError as e: raise SourceError(f"cannot read {path}: {e}") from e
    with fh:
        yield from fh

def _require_file(path: Path):
    if not path.is_file(): raise SourceError(f"source not found: {path}")

# ---------------------------------------------------------------------------
# Corpus loader
# ---------------------------------------------------------------------------

def _records_to_table(records: Iterable[ItemSetRecord], item_sep: str) -> pa.Table:
    rows = [{"seq": i, "items": r.joined(item_sep), "support": float(r.support), "win_ratio": float(r.win_ratio)} for i, r in enumerate(records)]
    return pa.Table.from_pylist(rows, schema=ITEMSET_SCHEMA)

def _text_source_table(path: Path, field_sep: str, item_sep: str) -> pa.Table:
    parsed = iter_parsed(_read_lines(path), parse_itemset_line, field_sep=field_sep, item_sep=item_sep)
    return _records_to_table(successes(parsed), item_sep)

def _stage_file_source(conn: DuckDBConnection, path: Path):
    p = str(path).replace("'", "''")
    reader = "read_parquet" if p.endswith(".parquet") else "read_csv_auto"
    try: conn.execute(f"CREATE OR REPLACE TEMP TABLE _tmp_itemsets_raw AS SELECT * FROM {reader}('{p}')")
    except duckdb.Error as e: raise SourceError(f"cannot read {path}: {e}") from e

def _stage_frame_source(conn: DuckDBConnection, source: Any):
    try: df = nw.from_native(source, eager_only=True)
    except TypeError as e: raise ValueError(f"Unsupported corpus source: {type(source).__name__}") from e
    conn.register("_tmp_itemsets_df", df.to_arrow())
    conn.execute("CREATE OR REPLACE TEMP TABLE _tmp_itemsets_raw AS SELECT * FROM _tmp_itemsets_df")
    conn.unregister("_tmp_itemsets_df")

def _normalise_staged(conn: DuckDBConnection) -> pa.Table:
    cols = set(conn.query("SELECT * FROM _tmp_itemsets_raw LIMIT 0").column_names)
    missing = {"items", "support", "win_ratio"} - cols
    if missing: raise ValueError(f"Missing columns: {sorted(missing)}")
    return conn.query("""
        SELECT (row_number() OVER () - 1)::BIGINT AS seq, items::VARCHAR AS items,
               TRY_CAST(support AS DOUBLE) AS support, TRY_CAST(win_ratio AS DOUBLE) AS win_ratio
        FROM _tmp_itemsets_raw
    """)

def _drop_invalid(table: pa.Table, item_sep: str) -> pa.Table:
    rows = table.to_pylist()
    valid = [r for r in rows if r["items"] is not None and r["support"] is not None and r["win_ratio"] is not None]
    if len(valid) < len(rows):
        logger.warning("Dropped %d item set rows with missing or non-numeric fields", len(rows) - len(valid))
    for i, r in enumerate(valid):
        r["seq"] = i
        r["items"] = item_sep.join(t for t in r["items"].split(item_sep) if t)
    return pa.Table.from_pylist(valid, schema=ITEMSET_SCHEMA)

def _table_source(conn: DuckDBConnection, source: Any, field_sep: str, item_sep: str) -> pa.Table:
    if isinstance(source, (str, Path)):
        path = Path(source)
        _require_file(path)
        if path.suffix.lower() in TEXT_SUFFIXES: return _text_source_table(path, field_sep, item_sep)
        if path.suffix.lower() not in (".csv", ".parquet"): raise ValueError("Unsupported file type")
        _stage_file_source(conn, path)
    elif isinstance(source, pa.Table) or hasattr(source, "columns"):
        _stage_frame_source(conn, source)
    else:
        return _records_to_table(source, item_sep)
    return _drop_invalid(_normalise_staged(conn), item_sep)

def load_itemsets(
    conn: DuckDBConnection,
    source: Union[str, Path, Any, Iterable[ItemSetRecord]],
    table_name: str = "itemsets",
    field_sep: str = "\t",
    item_sep: str = DEFAULT_ITEM_SEP,
) -> int:
    """Load the frequent item set corpus into ``table_name``; returns the row count."""
    table = _table_source(conn, source, field_sep, item_sep)
    conn.register("_tmp_itemsets", table)
    conn.execute(f"CREATE OR REPLACE TABLE {table_name} AS SELECT seq, items, support, win_ratio FROM _tmp_itemsets ORDER BY seq")
    conn.unregister("_tmp_itemsets")
    conn.execute("DROP TABLE IF EXISTS _tmp_itemsets_raw")
    n = conn.count(table_name)
    logger.info("Loaded %d item sets into %s", n, table_name)
    return n

def iter_itemset_records(
    conn: DuckDBConnection,
    table_name: str = "itemsets",
    item_sep: str = DEFAULT_ITEM_SEP,
    batch_size: int = 10_000,
) -> Iterator[Tuple[int, ItemSetRecord]]:
    """Stream ``(seq, record)`` pairs in input order."""
    reader = conn.stream(f"SELECT seq, items, support, win_ratio FROM {table_name} ORDER BY seq", batch_size)
    for batch in reader:
        for row in batch.to_pylist():
            yield row["seq"], ItemSetRecord.from_blob(row["items"], row["support"], row["win_ratio"], item_sep)

# ---------------------------------------------------------------------------
# Profile builder
# ---------------------------------------------------------------------------

def _profile_from_lines(lines: Iterable[str], field_sep: Optional[str], item_sep: str, count_sep: str, origin: str) -> OwnedItemProfile:
    seen = good = 0
    pairs: List[Tuple[str, int]] = []
    for res in iter_parsed(lines, parse_profile_line, field_sep=field_sep, item_sep=item_sep, count_sep=count_sep):
        seen += 1
        if res.ok:
            good += 1
            pairs.extend(res.value)
    if seen and not good: raise SourceError(f"no valid profile line in {origin} ({seen} malformed)")
    return OwnedItemProfile.from_pairs(pairs)

def _profile_from_frame(source: Any) -> OwnedItemProfile:
    df = nw.from_native(source, eager_only=True)
    if "item_id" not in df.columns: raise ValueError("Missing columns: ['item_id']")
    items = df.get_column("item_id").to_list()
    counts = df.get_column("count").to_list() if "count" in df.columns else [1] * len(items)
    return OwnedItemProfile.from_pairs((str(i), c) for i, c in zip(items, counts) if i is not None)

def build_profile(
    source: Union[str, Path, Mapping[str, int], Iterable[str], Any],
    field_sep: Optional[str] = None,
    item_sep: str = DEFAULT_ITEM_SEP,
    count_sep: str = "$$",
) -> OwnedItemProfile:
    """Build the owned-item profile. Construction completes before any scoring sees it."""
    if isinstance(source, OwnedItemProfile): profile = source
    elif isinstance(source, (str, Path)):
        path = Path(source)
        _require_file(path)
        profile = _profile_from_lines(_read_lines(path), field_sep, item_sep, count_sep, str(path))
    elif isinstance(source, Mapping): profile = OwnedItemProfile(source)
    elif isinstance(source, pa.Table) or hasattr(source, "columns"): profile = _profile_from_frame(source)
    else: profile = _profile_from_lines(source, field_sep, item_sep, count_sep, "<lines>")
    logger.info("Built profile with %d distinct items", len(profile))
    return profile

def register_profile(conn: DuckDBConnection, profile: OwnedItemProfile, table_name: str = "profile") -> int:
    table = pa.Table.from_pylist([{"item_id": k, "count": v} for k, v in profile.items()], schema=PROFILE_SCHEMA)
    conn.register("_tmp_profile", table)
    conn.execute(f'CREATE OR REPLACE TABLE {table_name} AS SELECT item_id, "count" FROM _tmp_profile')
    conn.unregister("_tmp_profile")
    return len(profile)