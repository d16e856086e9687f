"""
Typed records exchanged between the loaders, the scorer and the ranker.

All records are immutable. The profile in particular is shared read-only by
every scoring task of a run, so it exposes no mutating methods at all.
"""
from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple

DEFAULT_ITEM_SEP = "&&"


@dataclass(frozen=True)
class ItemSetRecord:
    """One mined frequent combination: ``items`` in mined order, ``support`` and ``win_ratio``."""

    items: Tuple[str, ...]
    support: float
    win_ratio: float

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    def joined(self, sep: str = DEFAULT_ITEM_SEP) -> str:
        return sep.join(self.items)

    @classmethod
    def from_blob(cls, blob: str, support: float, win_ratio: float, sep: str = DEFAULT_ITEM_SEP) -> ItemSetRecord:
        return cls(tuple(t for t in blob.split(sep) if t), support, win_ratio)


class OwnedItemProfile(Mapping[str, int]):
    """Read-only multiset of the items a user owns (item id -> owned count)."""

    __slots__ = ("_counts", "_keys")

    def __init__(self, counts: Optional[Mapping[str, int]] = None):
        data: Dict[str, int] = {}
        for item, cnt in (counts or {}).items():
            cnt = int(cnt)
            if cnt < 0: raise ValueError(f"owned count must be non-negative, got {cnt} for {item!r}")
            data[str(item)] = cnt
        self._counts = MappingProxyType(data)
        self._keys = frozenset(data)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, int]]) -> OwnedItemProfile:
        """Aggregate ``(item_id, count)`` pairs; repeated items sum their counts."""
        totals: Dict[str, int] = {}
        for item, cnt in pairs:
            totals[item] = totals.get(item, 0) + int(cnt)
        return cls(totals)

    def keys(self) -> FrozenSet[str]:  # type: ignore[override]
        return self._keys

    def count(self, item: str) -> int:
        return self._counts.get(item, 0)

    def __getitem__(self, item: str) -> int:
        return self._counts[item]

    def __contains__(self, item: object) -> bool:
        return item in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __reduce__(self):
        return (OwnedItemProfile, (dict(self._counts),))

    def __repr__(self) -> str:
        return f"OwnedItemProfile({dict(self._counts)!r})"


@dataclass(frozen=True)
class ScoredCandidate:
    items: str
    score: float
    overlap_count: int

    def as_row(self) -> Dict[str, Any]:
        return {"items": self.items, "score": self.score, "overlap_count": self.overlap_count}


@dataclass(frozen=True)
class RankedResult(ScoredCandidate):
    """A candidate that survived admission and made its bucket's top-N."""


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one input line: either ``value`` or ``error`` is set."""

    value: Any = None
    error: Optional[Exception] = None
    line_no: int = 0
    line: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None
