from __future__ import annotations
from setrank.core.records import ScoredCandidate

class AdmissionFilter:
    """Keep a candidate if it scores above the threshold or the user already owns more than ``min_overlap`` of it."""

    def __init__(self, score_threshold: float, min_overlap: int = 1):
        if min_overlap < 0: raise ValueError("min_overlap must be non-negative")
        self.score_threshold = float(score_threshold)
        self.min_overlap = min_overlap

    def admit(self, candidate: ScoredCandidate) -> bool:
        # NaN compares False, so a NaN score is admitted only through overlap
        return candidate.score > self.score_threshold or candidate.overlap_count > self.min_overlap

    __call__ = admit

    def __repr__(self) -> str:
        return f"AdmissionFilter(score_threshold={self.score_threshold!r}, min_overlap={self.min_overlap!r})"
