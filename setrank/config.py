"""Job configuration: source locations, output destination and ranking parameters."""
from __future__ import annotations
import os
from pathlib import Path
from typing import Mapping, Optional, Union
from setrank.core.records import DEFAULT_ITEM_SEP
from setrank.scoring.ranker import DEFAULT_TOP_N

ENV_PREFIX = "SETRANK_"
DEFAULT_SCORE_THRESHOLD = 0.0
STRATEGIES = ("python", "sql")

class JobConfig:
    def __init__(
        self,
        itemsets_path: Union[str, Path],
        profile_path: Union[str, Path],
        output_path: Union[str, Path],
        score_threshold: float = DEFAULT_SCORE_THRESHOLD,
        top_n: int = DEFAULT_TOP_N,
        item_sep: str = DEFAULT_ITEM_SEP,
        field_sep: Optional[str] = None,
        workers: Optional[int] = None,
        strategy: str = "python",
    ):
        if top_n < 1: raise ValueError("top_n must be >= 1")
        if workers is not None and workers < 1: raise ValueError("workers must be >= 1")
        if strategy not in STRATEGIES: raise ValueError(f"strategy must be one of {list(STRATEGIES)}")
        if not item_sep: raise ValueError("item_sep must be non-empty")
        self.itemsets_path = Path(itemsets_path)
        self.profile_path = Path(profile_path)
        self.output_path = Path(output_path)
        self.score_threshold = float(score_threshold)
        self.top_n = int(top_n)
        self.item_sep = item_sep
        self.field_sep = field_sep
        self.workers = workers
        self.strategy = strategy

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX, **overrides) -> JobConfig:
        """Read ``SETRANK_*`` variables; keyword overrides that are not None win over the environment."""
        env = os.environ if environ is None else environ
        def get(name, default=None): return env.get(prefix + name, default)

        values = {
            "itemsets_path": get("ITEMSETS"),
            "profile_path": get("PROFILE"),
            "output_path": get("OUTPUT"),
            "score_threshold": float(get("SCORE_THRESHOLD", DEFAULT_SCORE_THRESHOLD)),
            "top_n": int(get("TOP_N", DEFAULT_TOP_N)),
            "item_sep": get("ITEM_SEP", DEFAULT_ITEM_SEP),
            "field_sep": get("FIELD_SEP"),
            "workers": int(get("WORKERS")) if get("WORKERS") else None,
            "strategy": get("STRATEGY", "python"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        missing = [k for k in ("itemsets_path", "profile_path", "output_path") if not values[k]]
        if missing: raise ValueError(f"Missing configuration: {missing}")
        return cls(**values)

    def __repr__(self) -> str:
        return (f"JobConfig(itemsets_path={str(self.itemsets_path)!r}, profile_path={str(self.profile_path)!r}, "
                f"output_path={str(self.output_path)!r}, score_threshold={self.score_threshold!r}, top_n={self.top_n!r})")
