"""
setrank.datasets.cards: Card game deck generators.

Supports follow a power law over a small card pool so a handful of
combinations dominate, as mined frequent sets usually do.
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from typing import List, Optional

from setrank.core.records import DEFAULT_ITEM_SEP

ARCHETYPES = ["aggro", "control", "midrange", "combo"]
EVENTS = ["regional", "open", "invitational"]


def _card_names(n_cards: int) -> List[str]:
    return [f"card_{i:03d}" for i in range(n_cards)]


def generate_card_itemsets(
    n_sets: int = 200,
    n_cards: int = 40,
    max_len: int = 4,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """
    Generate a frequent item set corpus.

    Columns: ``items`` (``&&``-joined), ``support``, ``win_ratio``

    Example
    -------
    >>> from setrank.datasets import generate_card_itemsets
    >>> df = generate_card_itemsets(n_sets=10, seed=7)
    >>> df.columns.tolist()
    ['items', 'support', 'win_ratio']
    """
    if max_len < 1: raise ValueError("max_len must be >= 1")
    rng = np.random.default_rng(seed)
    cards = np.array(_card_names(n_cards))
    weights = 1.0 / np.arange(1, n_cards + 1)
    weights /= weights.sum()
    rows = []
    for rank in range(1, n_sets + 1):
        k = int(rng.integers(1, min(max_len, n_cards) + 1))
        picked = rng.choice(cards, size=k, replace=False, p=weights)
        rows.append({
            "items": DEFAULT_ITEM_SEP.join(sorted(picked)),
            "support": float(min(1.0, 0.6 / rank ** 0.7)),
            "win_ratio": float(rng.uniform(0.3, 0.8)),
        })
    return pd.DataFrame(rows, columns=["items", "support", "win_ratio"])


def generate_player_decks(
    n_players: int = 5,
    deck_size: int = 12,
    n_cards: int = 40,
    seed: Optional[int] = None,
) -> List[str]:
    """
    Generate raw user input lines.

    Each line is ``player \\t wins,losses \\t event \\t archetype \\t cards``,
    where ``cards`` joins ``count$$card`` tokens with ``&&``.
    """
    rng = np.random.default_rng(seed)
    cards = _card_names(n_cards)
    lines = []
    for p in range(n_players):
        deck = rng.choice(cards, size=min(deck_size, n_cards), replace=False)
        terms = DEFAULT_ITEM_SEP.join(f"{int(rng.integers(1, 3))}$${c}" for c in deck)
        wins = int(rng.integers(0, 8))
        lines.append(f"player_{p}\t{wins},{7 - wins}\t{rng.choice(EVENTS)}\t{rng.choice(ARCHETYPES)}\t{terms}")
    return lines
