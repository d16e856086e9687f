"""Tests for job configuration and the batch driver."""

import pytest

from setrank.cli import build_parser, main, run_job
from setrank.config import JobConfig
from setrank.errors import SourceError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ITEMSETS", "PROFILE", "OUTPUT", "SCORE_THRESHOLD", "TOP_N", "ITEM_SEP", "FIELD_SEP", "WORKERS", "STRATEGY"):
        monkeypatch.delenv(f"SETRANK_{name}", raising=False)


class TestJobConfig:

    def test_defaults(self, tmp_path):
        cfg = JobConfig(tmp_path / "a", tmp_path / "b", tmp_path / "c")
        assert cfg.score_threshold == 0.0
        assert cfg.top_n == 3
        assert cfg.strategy == "python"
        assert cfg.workers is None

    @pytest.mark.parametrize("kwargs", [{"top_n": 0}, {"workers": 0}, {"strategy": "spark"}, {"item_sep": ""}])
    def test_validation(self, tmp_path, kwargs):
        with pytest.raises(ValueError):
            JobConfig("a", "b", "c", **kwargs)

    def test_from_env(self):
        env = {
            "SETRANK_ITEMSETS": "sets.tsv",
            "SETRANK_PROFILE": "user.tsv",
            "SETRANK_OUTPUT": "out.tsv",
            "SETRANK_SCORE_THRESHOLD": "0.25",
            "SETRANK_TOP_N": "5",
            "SETRANK_WORKERS": "4",
            "SETRANK_STRATEGY": "sql",
        }
        cfg = JobConfig.from_env(env)
        assert str(cfg.itemsets_path) == "sets.tsv"
        assert cfg.score_threshold == 0.25
        assert cfg.top_n == 5
        assert cfg.workers == 4
        assert cfg.strategy == "sql"

    def test_overrides_win(self):
        env = {"SETRANK_ITEMSETS": "a", "SETRANK_PROFILE": "b", "SETRANK_OUTPUT": "c", "SETRANK_TOP_N": "5"}
        cfg = JobConfig.from_env(env, top_n=2, score_threshold=None)
        assert cfg.top_n == 2
        assert cfg.score_threshold == 0.0

    def test_missing_paths(self):
        with pytest.raises(ValueError, match="Missing configuration"):
            JobConfig.from_env({})


class TestRunJob:

    def test_writes_ranked_output(self, itemsets_file, profile_file, tmp_path):
        out = tmp_path / "recs.tsv"
        table = run_job(JobConfig(itemsets_file, profile_file, out, score_threshold=0.3))
        assert table.num_rows == 2
        lines = out.read_text().splitlines()
        assert [l.split("\t")[0] for l in lines] == ["A&&B", "B&&C&&D"]
        assert [l.split("\t")[2] for l in lines] == ["2", "1"]

    def test_idempotent(self, itemsets_file, profile_file, tmp_path):
        out = tmp_path / "recs.tsv"
        cfg = JobConfig(itemsets_file, profile_file, out, score_threshold=0.3)
        run_job(cfg)
        first = out.read_bytes()
        run_job(cfg)
        assert out.read_bytes() == first

    def test_missing_profile_writes_nothing(self, itemsets_file, tmp_path):
        out = tmp_path / "recs.tsv"
        with pytest.raises(SourceError):
            run_job(JobConfig(itemsets_file, tmp_path / "missing.tsv", out))
        assert not out.exists()

    def test_unusable_profile_keeps_previous_output(self, itemsets_file, tmp_path):
        bad = tmp_path / "user.tsv"
        bad.write_text("typo\n")
        out = tmp_path / "recs.tsv"
        out.write_text("previous run\n")
        with pytest.raises(SourceError):
            run_job(JobConfig(itemsets_file, bad, out))
        assert out.read_text() == "previous run\n"


class TestMain:

    def test_success(self, itemsets_file, profile_file, tmp_path):
        out = tmp_path / "recs.tsv"
        code = main(["--itemsets", str(itemsets_file), "--profile", str(profile_file),
                     "--output", str(out), "--threshold", "0.3", "--strategy", "sql"])
        assert code == 0
        assert len(out.read_text().splitlines()) == 2

    def test_env_fallback(self, itemsets_file, profile_file, tmp_path, monkeypatch):
        out = tmp_path / "recs.tsv"
        monkeypatch.setenv("SETRANK_ITEMSETS", str(itemsets_file))
        monkeypatch.setenv("SETRANK_PROFILE", str(profile_file))
        monkeypatch.setenv("SETRANK_OUTPUT", str(out))
        assert main(["--threshold", "0.3", "--workers", "2"]) == 0
        assert out.exists()

    def test_source_error_exit_code(self, itemsets_file, tmp_path):
        out = tmp_path / "recs.tsv"
        code = main(["--itemsets", str(itemsets_file), "--profile", str(tmp_path / "nope"), "--output", str(out)])
        assert code == 1
        assert not out.exists()

    def test_missing_config_exit_code(self):
        assert main([]) == 2

    def test_parser_flags(self):
        args = build_parser().parse_args(["--top-n", "4", "--field-sep", "|"])
        assert args.top_n == 4
        assert args.field_sep == "|"
