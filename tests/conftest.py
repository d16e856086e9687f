# ---------------------------------------------------------------------------
# Tests configuration
# ---------------------------------------------------------------------------

import pytest
import pandas as pd

from setrank.core.connection import DuckDBConnection
from setrank.core.records import OwnedItemProfile


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def conn():
    """In-memory DuckDB connection for each test."""
    db = DuckDBConnection()  # :memory:
    yield db
    db.close()


@pytest.fixture
def itemset_lines():
    """Three mined sets over items A to D."""
    # A&&B    0.5 * 0.8 = 0.40
    # A&&C    0.2 * 0.5 = 0.10
    # B&&C&&D 0.9 * 0.9 = 0.81
    return [
        "A&&B\t0.5\t0.8\n",
        "A&&C\t0.2\t0.5\n",
        "B&&C&&D\t0.9\t0.9\n",
    ]


@pytest.fixture
def itemsets_df():
    return pd.DataFrame({
        "items": ["A&&B", "A&&C", "B&&C&&D"],
        "support": [0.5, 0.2, 0.9],
        "win_ratio": [0.8, 0.5, 0.9],
    })


@pytest.fixture
def itemsets_file(tmp_path, itemset_lines):
    path = tmp_path / "frequent_sets.tsv"
    path.write_text("".join(itemset_lines))
    return path


@pytest.fixture
def profile_lines():
    """One user owning A (x2) and B (x1)."""
    return ["alice\t5,2\tregional\taggro\t2$$A&&1$$B\n"]


@pytest.fixture
def profile_file(tmp_path, profile_lines):
    path = tmp_path / "user_input.tsv"
    path.write_text("".join(profile_lines))
    return path


@pytest.fixture
def profile_ab():
    return OwnedItemProfile({"A": 2, "B": 1})


@pytest.fixture
def loaded_engine(itemsets_file, profile_file):
    """Recommender with the three-set corpus and the A+B profile loaded."""
    from setrank.api import Recommender
    engine = Recommender(score_threshold=0.3, top_n=3)
    engine.load_itemsets(itemsets_file)
    engine.load_profile(profile_file)
    yield engine
    engine.close()
