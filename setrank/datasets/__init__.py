"""
setrank.datasets: Synthetic corpora for demos and tests.

- **cards**: mined card combinations with support / win ratio, and raw
  player deck lines in the five-field input format.
"""

from .cards import generate_card_itemsets, generate_player_decks

__all__ = ["generate_card_itemsets", "generate_player_decks"]
