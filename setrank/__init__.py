from .api import Recommender
from .core.connection import DuckDBConnection
from .core.records import ItemSetRecord, OwnedItemProfile, ScoredCandidate, RankedResult, ParseResult
from .core.ingestion import load_itemsets, build_profile, parse_itemset_line, parse_profile_line
from .scoring import score_record, AdmissionFilter, BucketedRanker
from .sink import write_results
from .config import JobConfig
from .errors import RecordFormatError, ProfileFormatError, SourceError
from .datasets import generate_card_itemsets, generate_player_decks

def recommend(itemsets, profile, score_threshold: float = 0.0, top_n: int = 3, **kwargs):
    """One-shot ranking of ``itemsets`` against ``profile``."""
    with Recommender(score_threshold=score_threshold, top_n=top_n) as engine:
        engine.load_itemsets(itemsets)
        engine.load_profile(profile)
        return engine.recommend(**kwargs)

def connect(database=":memory:", **kwargs) -> Recommender:
    return Recommender(database=database, **kwargs)

__all__ = [
    "Recommender",
    "recommend",
    "connect",
    "DuckDBConnection",
    "ItemSetRecord",
    "OwnedItemProfile",
    "ScoredCandidate",
    "RankedResult",
    "ParseResult",
    "load_itemsets",
    "build_profile",
    "parse_itemset_line",
    "parse_profile_line",
    "score_record",
    "AdmissionFilter",
    "BucketedRanker",
    "write_results",
    "JobConfig",
    "RecordFormatError",
    "ProfileFormatError",
    "SourceError",
    # Datasets
    "generate_card_itemsets",
    "generate_player_decks",
]
