"""
Bucketed top-N ranking.

Candidates are grouped by ``overlap_count``. Each bucket keeps a bounded
min-heap of size ``top_n`` so memory stays flat however large the corpus is.
Heap keys are ``(is_valid, score, -seq)``: NaN scores rank below every real
score, and among equal scores the earlier input wins. An insertion counter
follows the key so candidates themselves are never compared.
"""
from __future__ import annotations
import heapq
import itertools
import math
from typing import Dict, Iterable, List, Tuple
from setrank.core.records import RankedResult, ScoredCandidate

DEFAULT_TOP_N = 3

def _rank_key(candidate: ScoredCandidate, seq: int) -> Tuple[bool, float, int]:
    if math.isnan(candidate.score): return (False, 0.0, -seq)
    return (True, candidate.score, -seq)

class BucketedRanker:
    def __init__(self, top_n: int = DEFAULT_TOP_N):
        if top_n < 1: raise ValueError("top_n must be >= 1")
        self.top_n = top_n
        self._buckets: Dict[int, List[Tuple[Tuple[bool, float, int], int, ScoredCandidate]]] = {}
        self._counter = itertools.count()

    def add(self, candidate: ScoredCandidate, seq: int):
        """``seq`` is the candidate's position in the input stream and must be unique per run."""
        heap = self._buckets.setdefault(candidate.overlap_count, [])
        entry = (_rank_key(candidate, seq), -next(self._counter), candidate)
        if len(heap) < self.top_n: heapq.heappush(heap, entry)
        elif entry[:2] > heap[0][:2]: heapq.heapreplace(heap, entry)

    def extend(self, pairs: Iterable[Tuple[int, ScoredCandidate]]) -> BucketedRanker:
        for seq, candidate in pairs:
            self.add(candidate, seq)
        return self

    def merge(self, other: BucketedRanker) -> BucketedRanker:
        """Fold in a ranker built over a disjoint partition of the same run."""
        for heap in other._buckets.values():
            for key, _, candidate in heap:
                self.add(candidate, -key[2])
        return self

    def buckets(self) -> List[int]:
        return sorted(self._buckets, reverse=True)

    def bucket(self, overlap: int) -> List[RankedResult]:
        ordered = sorted(self._buckets.get(overlap, []), key=lambda e: e[:2], reverse=True)
        return [RankedResult(c.items, c.score, c.overlap_count) for _, _, c in ordered]

    def results(self) -> List[RankedResult]:
        """Ranked rows, buckets in descending overlap order."""
        return [r for overlap in self.buckets() for r in self.bucket(overlap)]
