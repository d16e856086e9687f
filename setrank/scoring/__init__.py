from .scorer import score_record, score_all, overlap_count
from .admission import AdmissionFilter
from .ranker import BucketedRanker, DEFAULT_TOP_N

__all__ = ["score_record", "score_all", "overlap_count", "AdmissionFilter", "BucketedRanker", "DEFAULT_TOP_N"]
