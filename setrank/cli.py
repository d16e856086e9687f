"""Batch job driver: load, rank and write one user's recommendations."""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional
import pyarrow as pa
from setrank.api import Recommender
from setrank.config import JobConfig, STRATEGIES
from setrank.errors import SourceError

logger = logging.getLogger(__name__)

def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

def run_job(config: JobConfig) -> pa.Table:
    """Corpus and profile are fully loaded before ranking; nothing is written if either fails."""
    logger.info("Starting recommendation run: %r", config)
    with Recommender(score_threshold=config.score_threshold, top_n=config.top_n, item_sep=config.item_sep) as rec:
        rec.load_itemsets(config.itemsets_path)
        rec.load_profile(config.profile_path, field_sep=config.field_sep)
        table = rec.recommend(strategy=config.strategy, workers=config.workers)
        rec.write(table, config.output_path)
    return table

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="setrank", description="Rank frequent item sets against a user's owned items.")
    p.add_argument("--itemsets", dest="itemsets_path", help="frequent item set file (tsv, csv or parquet)")
    p.add_argument("--profile", dest="profile_path", help="user input file")
    p.add_argument("--output", dest="output_path", help="recommendations output file")
    p.add_argument("--threshold", dest="score_threshold", type=float, help="minimum support * win ratio")
    p.add_argument("--top-n", dest="top_n", type=int, help="results kept per overlap bucket")
    p.add_argument("--workers", type=int, help="parallel scoring workers")
    p.add_argument("--strategy", choices=list(STRATEGIES))
    p.add_argument("--field-sep", dest="field_sep", help="profile field separator (default: auto)")
    p.add_argument("--log-level", default="INFO")
    return p

def main(argv: Optional[List[str]] = None) -> int:
    args = vars(build_parser().parse_args(argv))
    setup_logging(args.pop("log_level"))
    try:
        config = JobConfig.from_env(**args)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    try:
        run_job(config)
    except SourceError as e:
        logger.error("Run aborted, no output written: %s", e)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
