from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union
import pyarrow as pa
from setrank.core.connection import DuckDBConnection
from setrank.core.ingestion import build_profile, iter_itemset_records, load_itemsets, register_profile
from setrank.core.records import DEFAULT_ITEM_SEP, ItemSetRecord, OwnedItemProfile, RankedResult
from setrank.scoring import AdmissionFilter, BucketedRanker, DEFAULT_TOP_N, score_all, score_record
from setrank.sink import write_results

logger = logging.getLogger(__name__)

RESULT_SCHEMA = pa.schema([("items", pa.string()), ("score", pa.float64()), ("overlap_count", pa.int64())])
STRATEGIES = ["python", "sql"]

def _rank_partition(
    partition: List[Tuple[int, ItemSetRecord]],
    profile: OwnedItemProfile,
    admission: AdmissionFilter,
    top_n: int,
    item_sep: str,
) -> BucketedRanker:
    ranker = BucketedRanker(top_n)
    ranker.extend((seq, c) for seq, c in score_all(partition, profile, item_sep) if admission.admit(c))
    return ranker

def _partition(records: List[Tuple[int, ItemSetRecord]], n: int) -> List[List[Tuple[int, ItemSetRecord]]]:
    size = -(-len(records) // n) or 1
    return [records[i:i + size] for i in range(0, len(records), size)]

def results_to_table(results: List[RankedResult]) -> pa.Table:
    if not results: return pa.Table.from_batches([], schema=RESULT_SCHEMA)
    return pa.Table.from_pylist([r.as_row() for r in results], schema=RESULT_SCHEMA)

class Recommender:
    """Scores a frequent item set corpus against one user's owned items and ranks the results per overlap bucket."""

    def __init__(
        self,
        database: Union[str, Path] = ":memory:",
        memory_limit: Optional[str] = None,
        threads: Optional[int] = None,
        score_threshold: float = 0.0,
        top_n: int = DEFAULT_TOP_N,
        item_sep: str = DEFAULT_ITEM_SEP,
    ) -> None:
        if top_n < 1: raise ValueError("top_n must be >= 1")
        self.conn = DuckDBConnection(database=database, memory_limit=memory_limit, threads=threads)
        self.table_name, self.profile_table = "itemsets", "profile"
        self.score_threshold, self.top_n, self.item_sep = float(score_threshold), top_n, item_sep
        self._profile: Optional[OwnedItemProfile] = None

    @property
    def profile(self) -> Optional[OwnedItemProfile]: return self._profile

    def load_itemsets(self, source: Any, field_sep: str = "\t") -> int:
        return load_itemsets(self.conn, source, table_name=self.table_name, field_sep=field_sep, item_sep=self.item_sep)

    def load_profile(self, source: Any, field_sep: Optional[str] = None, count_sep: str = "$$") -> OwnedItemProfile:
        profile = build_profile(source, field_sep=field_sep, item_sep=self.item_sep, count_sep=count_sep)
        register_profile(self.conn, profile, table_name=self.profile_table)
        self._profile = profile
        return profile

    def _check_ready(self):
        if self._profile is None: raise RuntimeError("Call load_profile() first.")
        if not self.conn.table_exists(self.table_name): raise RuntimeError("Call load_itemsets() first.")

    def score_all(self) -> pa.Table:
        """Every candidate, unfiltered and in input order."""
        self._check_ready()
        rows = [score_record(r, self._profile, self.item_sep).as_row() for _, r in iter_itemset_records(self.conn, self.table_name, self.item_sep)]
        return pa.Table.from_pylist(rows, schema=RESULT_SCHEMA)

    def _recommend_python(self, admission: AdmissionFilter, top_n: int, workers: Optional[int]) -> pa.Table:
        records = iter_itemset_records(self.conn, self.table_name, self.item_sep)
        if not workers or workers <= 1:
            return results_to_table(_rank_partition(records, self._profile, admission, top_n, self.item_sep).results())

        parts = _partition(list(records), workers)
        profile = self._profile
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(_rank_partition, p, profile, admission, top_n, self.item_sep) for p in parts]
            partials = [f.result() for f in futures]
        ranker = BucketedRanker(top_n)
        for partial in partials:
            ranker.merge(partial)
        return results_to_table(ranker.results())

    def _recommend_sql(self, admission: AdmissionFilter, top_n: int) -> pa.Table:
        sep = self.item_sep.replace("'", "''")
        query = f"""
            WITH exploded AS (
                SELECT seq, unnest(string_split(items, '{sep}')) AS item FROM {self.table_name}
            ), owned_overlap AS (
                SELECT e.seq, COUNT(DISTINCT e.item) AS overlap_count
                FROM exploded e JOIN {self.profile_table} p ON e.item = p.item_id
                GROUP BY 1
            ), scored AS (
                SELECT i.seq, i.items, i.support * i.win_ratio AS score, COALESCE(o.overlap_count, 0)::BIGINT AS overlap_count
                FROM {self.table_name} i LEFT JOIN owned_overlap o ON i.seq = o.seq
            )
            SELECT items, score, overlap_count FROM scored
            WHERE (NOT isnan(score) AND score > ?) OR overlap_count > ?
            QUALIFY row_number() OVER (PARTITION BY overlap_count ORDER BY isnan(score), score DESC, seq) <= ?
            ORDER BY overlap_count DESC, isnan(score), score DESC, seq
        """
        return self.conn.query(query, [admission.score_threshold, admission.min_overlap, top_n]).cast(RESULT_SCHEMA)

    def recommend(
        self,
        strategy: str = "python",
        score_threshold: Optional[float] = None,
        top_n: Optional[int] = None,
        workers: Optional[int] = None,
    ) -> pa.Table:
        if strategy not in STRATEGIES: raise ValueError(f"strategy must be one of {STRATEGIES}")
        self._check_ready()
        admission = AdmissionFilter(self.score_threshold if score_threshold is None else score_threshold)
        top_n = self.top_n if top_n is None else top_n
        if top_n < 1: raise ValueError("top_n must be >= 1")
        if strategy == "sql": res = self._recommend_sql(admission, top_n)
        else: res = self._recommend_python(admission, top_n, workers)
        logger.info("Ranked %d recommendations (strategy=%s, threshold=%s, top_n=%d)", res.num_rows, strategy, admission.score_threshold, top_n)
        return res

    def write(self, table: pa.Table, path: Union[str, Path]) -> Path:
        return write_results(table, path)

    def sql(self, query: str) -> pa.Table: return self.conn.query(query)
    def close(self): self.conn.close()
    def __enter__(self): return self
    def __exit__(self, *_): self.close()
    def __repr__(self) -> str: return f"Recommender(database={self.conn._database!r}, top_n={self.top_n})"
