"""
Pairwise similarity scoring.

No single metric is reliable across paraphrase styles, so the scorer
blends several cheap signals from metrics.py. Two calibrated presets are
available:

- THOROUGH: all five signals, for small batches
- FAST: length-ratio cutoff, then character Dice and word Jaccard only

Scores from different modes are not comparable with each other; a run
must use one mode for all of its pairs.
"""
import logging
from dataclasses import dataclass
from enum import Enum

from . import metrics

logger = logging.getLogger(__name__)


class ScoringMode(str, Enum):
    """Weighting preset used by SimilarityScorer."""
    THOROUGH = "thorough"
    FAST = "fast"


@dataclass(frozen=True)
class ThoroughWeights:
    """Weights of the thorough preset (sum = 1.0)."""
    character: float = 0.25
    token: float = 0.20
    line: float = 0.25
    structural: float = 0.20
    ngram: float = 0.10


@dataclass(frozen=True)
class FastWeights:
    """Weights and cutoff of the fast preset."""
    character: float = 0.6
    word: float = 0.4
    min_length_ratio: float = 0.3


# Line Aligner floors per mode
MATCH_FLOORS = {
    ScoringMode.THOROUGH: 0.75,
    ScoringMode.FAST: 0.8,
}


def match_floor(mode: ScoringMode) -> float:
    """Minimum per-line similarity for alignment evidence in the given mode."""
    return MATCH_FLOORS[ScoringMode(mode)]


def to_percent(score: float) -> float:
    """
    Convert a [0, 1] score to a percentage with two decimals.

    Examples:
        >>> to_percent(0.123456)
        12.35
        >>> to_percent(1.7)
        100.0
    """
    return round(min(max(score, 0.0), 1.0) * 100, 2)


class SimilarityScorer:
    """
    Combines similarity signals into one score in [0, 1].

    The score is symmetric, 1.0 for identical (trimmed) inputs and 0.0
    when either input is empty. Internal errors are logged and degrade
    to 0.0 instead of propagating.
    """

    def __init__(
        self,
        mode: ScoringMode = ScoringMode.THOROUGH,
        thorough_weights: ThoroughWeights | None = None,
        fast_weights: FastWeights | None = None,
    ):
        """
        Initialize scorer.

        Args:
            mode: Weighting preset
            thorough_weights: Override for the thorough preset
            fast_weights: Override for the fast preset
        """
        self.mode = ScoringMode(mode)
        self.thorough_weights = thorough_weights or ThoroughWeights()
        self.fast_weights = fast_weights or FastWeights()

    def passes_length_filter(self, length_a: int, length_b: int) -> bool:
        """Check the fast-mode length-ratio cutoff (always True in thorough mode)."""
        if self.mode is not ScoringMode.FAST:
            return True
        return metrics.length_ratio(length_a, length_b) >= self.fast_weights.min_length_ratio

    def score(self, code_a: str | None, code_b: str | None) -> float:
        """
        Score the similarity of two normalized programs.

        Args:
            code_a: First normalized program
            code_b: Second normalized program

        Returns:
            Similarity in [0, 1]
        """
        if not code_a or not code_b:
            return 0.0
        if code_a.strip() == code_b.strip():
            return 1.0

        # Canonical order keeps order-sensitive metrics symmetric
        if (len(code_b), code_b) < (len(code_a), code_a):
            code_a, code_b = code_b, code_a

        try:
            if self.mode is ScoringMode.FAST:
                combined = self._score_fast(code_a, code_b)
            else:
                combined = self._score_thorough(code_a, code_b)
        except Exception as e:
            logger.error(f"Error calculating similarity: {e}")
            return 0.0

        return min(combined, 1.0)

    def _score_thorough(self, code_a: str, code_b: str) -> float:
        w = self.thorough_weights
        return (
            metrics.dice_coefficient(code_a, code_b) * w.character
            + metrics.token_jaccard(code_a, code_b) * w.token
            + metrics.line_similarity(code_a, code_b) * w.line
            + metrics.structural_similarity(code_a, code_b) * w.structural
            + metrics.ngram_similarity(code_a, code_b) * w.ngram
        )

    def _score_fast(self, code_a: str, code_b: str) -> float:
        w = self.fast_weights
        if not self.passes_length_filter(len(code_a), len(code_b)):
            return 0.0
        return (
            metrics.dice_coefficient(code_a, code_b) * w.character
            + metrics.word_jaccard(code_a, code_b) * w.word
        )
