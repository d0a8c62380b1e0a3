"""
Unit tests for similarity/scorer.py

Tests blended similarity scores in thorough and fast modes.
"""
import pytest

from similarity import metrics
from similarity.normalizer import normalize_code
from similarity.scorer import (
    FastWeights,
    ScoringMode,
    SimilarityScorer,
    ThoroughWeights,
    match_floor,
    to_percent,
)

from conftest import ADD_NUMBERS, ADD_NUMBERS_RENAMED, BUBBLE_SORT


ARITHMETIC = normalize_code("""
a = 10
b = 20
c = a * b + a - b
d = c / 2 + c * 3
e = (a + b) * (c - d)
f = e ** 2 % 7
""")

TEXT_PROCESSING = normalize_code("""
s = "x"
""")


@pytest.fixture(params=[ScoringMode.THOROUGH, ScoringMode.FAST])
def scorer(request):
    return SimilarityScorer(request.param)


class TestScoreBasics:
    """Properties shared by both modes."""

    def test_identical_is_one(self, scorer):
        code = normalize_code(BUBBLE_SORT)
        assert scorer.score(code, code) == 1.0

    def test_identical_after_trim_is_one(self, scorer):
        assert scorer.score("x = compute(a)\n", "  x = compute(a)") == 1.0

    @pytest.mark.parametrize("a,b", [("", "x = 1"), ("x = 1", ""), (None, "x = 1"), ("", "")])
    def test_empty_is_zero(self, scorer, a, b):
        assert scorer.score(a, b) == 0.0

    def test_symmetric(self, scorer):
        a = normalize_code(ADD_NUMBERS)
        b = normalize_code(BUBBLE_SORT)
        assert scorer.score(a, b) == scorer.score(b, a)

    def test_symmetric_same_length(self, scorer):
        a = "print(x)\nx = var0(1)"
        b = "x = var0(2)\nprint(y)"
        assert len(a) == len(b)
        assert scorer.score(a, b) == scorer.score(b, a)

    def test_range(self, scorer):
        score = scorer.score(normalize_code(ADD_NUMBERS), normalize_code(BUBBLE_SORT))
        assert 0.0 <= score <= 1.0

    def test_renamed_copy_scores_one(self, scorer):
        assert scorer.score(normalize_code(ADD_NUMBERS), normalize_code(ADD_NUMBERS_RENAMED)) == 1.0


class TestThoroughMode:
    """Tests for the thorough preset."""

    def test_only_function_name_differs(self):
        """Programs differing only in a one-letter function name stay above 0.7."""
        a = normalize_code("def f():\n    return 1\n")
        b = normalize_code("def g():\n    return 1\n")
        score = SimilarityScorer(ScoringMode.THOROUGH).score(a, b)
        assert score >= 0.7
        assert score < 1.0

    def test_weights_sum_to_one(self):
        w = ThoroughWeights()
        assert w.character + w.token + w.line + w.structural + w.ngram == pytest.approx(1.0)

    def test_no_length_filter(self):
        assert SimilarityScorer(ScoringMode.THOROUGH).passes_length_filter(1, 1000)

    def test_metric_error_degrades_to_zero(self, monkeypatch, caplog):
        def broken(a, b):
            raise ValueError("bad input")

        monkeypatch.setattr(metrics, "token_jaccard", broken)
        with caplog.at_level("ERROR", logger="similarity.scorer"):
            assert SimilarityScorer(ScoringMode.THOROUGH).score("x = 1", "y = 2") == 0.0
        assert "bad input" in caplog.text


class TestFastMode:
    """Tests for the fast preset."""

    def test_length_filter(self):
        scorer = SimilarityScorer(ScoringMode.FAST)
        assert not scorer.passes_length_filter(29, 100)
        assert scorer.passes_length_filter(30, 100)

    def test_early_exit_skips_metrics(self, monkeypatch):
        """Disjoint programs with a small length ratio return 0 without computing metrics."""
        called = []
        monkeypatch.setattr(metrics, "dice_coefficient", lambda *args, **kwargs: called.append("dice") or 1.0)
        monkeypatch.setattr(metrics, "word_jaccard", lambda *args, **kwargs: called.append("word") or 1.0)

        assert len(TEXT_PROCESSING) / len(ARITHMETIC) < 0.3
        assert SimilarityScorer(ScoringMode.FAST).score(ARITHMETIC, TEXT_PROCESSING) == 0.0
        assert called == []

    def test_fast_blend(self):
        """Fast score is 0.6 * dice + 0.4 * word jaccard."""
        a = "total = price * count"
        b = "total = price + count"
        expected = 0.6 * metrics.dice_coefficient(a, b) + 0.4 * metrics.word_jaccard(a, b)
        assert SimilarityScorer(ScoringMode.FAST).score(a, b) == pytest.approx(expected)

    def test_custom_cutoff(self):
        scorer = SimilarityScorer(ScoringMode.FAST, fast_weights=FastWeights(min_length_ratio=0.0))
        assert scorer.passes_length_filter(1, 1000)


class TestHelpers:
    """Tests for match_floor and to_percent."""

    def test_match_floor(self):
        assert match_floor(ScoringMode.THOROUGH) == 0.75
        assert match_floor(ScoringMode.FAST) == 0.8
        assert match_floor("fast") == 0.8

    @pytest.mark.parametrize("score,expected", [
        (0.0, 0.0),
        (0.5, 50.0),
        (0.123456, 12.35),
        (1.0, 100.0),
        (1.2, 100.0),
        (-0.1, 0.0),
    ])
    def test_to_percent(self, score, expected):
        assert to_percent(score) == expected
