from __future__ import annotations
from typing import Container, Iterable, Iterator, Tuple
from setrank.core.records import DEFAULT_ITEM_SEP, ItemSetRecord, ScoredCandidate
from setrank.errors import RecordFormatError

def _as_float(value, name: str) -> float:
    try: return float(value)
    except (TypeError, ValueError) as e: raise RecordFormatError(f"{name} is not numeric: {value!r}") from e

def overlap_count(items: Iterable[str], owned: Container[str]) -> int:
    """Distinct items of ``items`` that are owned. Membership only, owned counts are ignored."""
    return sum(1 for item in set(items) if item in owned)

def score_record(record: ItemSetRecord, profile, item_sep: str = DEFAULT_ITEM_SEP) -> ScoredCandidate:
    """
    Score one item set against the owned-item profile.

    ``score = support * win_ratio`` with no clamping; ``overlap_count`` is the
    number of distinct record items present in ``profile``. The profile is only read.
    """
    if record.items is None: raise RecordFormatError("record has no items field")
    score = _as_float(record.support, "support") * _as_float(record.win_ratio, "win_ratio")
    return ScoredCandidate(record.joined(item_sep), score, overlap_count(record.items, profile.keys()))

def score_all(records: Iterable[Tuple[int, ItemSetRecord]], profile, item_sep: str = DEFAULT_ITEM_SEP) -> Iterator[Tuple[int, ScoredCandidate]]:
    for seq, record in records:
        yield seq, score_record(record, profile, item_sep)
