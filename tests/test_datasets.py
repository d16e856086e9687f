"""Tests for the synthetic dataset generators."""

import pandas as pd
import pytest

from setrank.core.ingestion import build_profile
from setrank.datasets import generate_card_itemsets, generate_player_decks


class TestCardItemsets:

    def test_columns_and_size(self):
        df = generate_card_itemsets(n_sets=50, seed=1)
        assert isinstance(df, pd.DataFrame)
        assert df.columns.tolist() == ["items", "support", "win_ratio"]
        assert len(df) == 50

    def test_reproducible(self):
        pd.testing.assert_frame_equal(generate_card_itemsets(seed=5), generate_card_itemsets(seed=5))

    def test_value_ranges(self):
        df = generate_card_itemsets(n_sets=100, max_len=3, seed=2)
        assert df["support"].between(0, 1).all()
        assert df["win_ratio"].between(0.3, 0.8).all()
        lengths = df["items"].str.split("&&").map(len)
        assert lengths.between(1, 3).all()

    def test_supports_decrease(self):
        df = generate_card_itemsets(n_sets=20, seed=3)
        assert df["support"].is_monotonic_decreasing

    def test_invalid_max_len(self):
        with pytest.raises(ValueError):
            generate_card_itemsets(max_len=0)


class TestPlayerDecks:

    def test_lines_parse_into_profile(self):
        lines = generate_player_decks(n_players=3, deck_size=10, seed=4)
        assert len(lines) == 3
        assert all(len(line.split("\t")) == 5 for line in lines)
        profile = build_profile(lines)
        assert 10 <= len(profile) <= 30

    def test_reproducible(self):
        assert generate_player_decks(seed=9) == generate_player_decks(seed=9)
