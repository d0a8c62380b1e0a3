"""
Individual similarity signals.

Every function here is pure, symmetric in its arguments (line_similarity
relies on the caller for a canonical order when both sides have the same
number of lines) and returns a value in [0, 1].
"""
import re

from .patterns import extract_structural_patterns

# Lines this short carry no signal (closing brackets, 'pass' fragments, ...)
MIN_LINE_LENGTH = 2
LINE_MATCH_FLOOR = 0.7
NGRAM_SIZE = 3

WORD_RE = re.compile(r"\w+")
WHITESPACE_RE = re.compile(r"\s+")


def _jaccard(set_a: set, set_b: set) -> float:
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def _bigrams(text: str) -> set[str]:
    return {text[i:i + 2] for i in range(len(text) - 1)}


def dice_coefficient(a: str, b: str, ignore_whitespace: bool = True) -> float:
    """
    Character-bigram Dice coefficient: 2|A∩B| / (|A| + |B|).

    Whitespace is removed before taking bigrams unless ignore_whitespace
    is False; the line-level matchers keep it.

    Examples:
        >>> dice_coefficient("night", "nacht")
        0.25
        >>> dice_coefficient("same", "same")
        1.0
        >>> dice_coefficient("x = 1", "x=1")
        1.0
    """
    if ignore_whitespace:
        a = WHITESPACE_RE.sub("", a)
        b = WHITESPACE_RE.sub("", b)
    if a == b:
        return 1.0 if a else 0.0
    if len(a) < 2 or len(b) < 2:
        return 0.0

    bigrams_a = _bigrams(a)
    bigrams_b = _bigrams(b)
    return 2 * len(bigrams_a & bigrams_b) / (len(bigrams_a) + len(bigrams_b))


def token_jaccard(a: str, b: str) -> float:
    """Jaccard similarity of lower-cased whitespace tokens."""
    return _jaccard(set(a.lower().split()), set(b.lower().split()))


def word_jaccard(a: str, b: str) -> float:
    """Jaccard similarity of lower-cased words (punctuation ignored)."""
    return _jaccard(set(WORD_RE.findall(a.lower())), set(WORD_RE.findall(b.lower())))


def significant_lines(code: str) -> list[str]:
    """Trimmed lines longer than MIN_LINE_LENGTH characters."""
    lines = (line.strip() for line in code.split("\n"))
    return [line for line in lines if len(line) > MIN_LINE_LENGTH]


def line_similarity(a: str, b: str, floor: float = LINE_MATCH_FLOOR) -> float:
    """
    Fraction of the shorter program's lines that have a counterpart.

    For each line of the side with fewer significant lines, the best
    unused line of the other side is taken greedily; it counts when its
    Dice coefficient is above the floor.

    Args:
        a: First program
        b: Second program
        floor: Per-line similarity a match must exceed

    Returns:
        Matched lines / lines on the shorter side
    """
    lines_a = significant_lines(a)
    lines_b = significant_lines(b)
    if not lines_a or not lines_b:
        return 0.0

    shorter, longer = (lines_a, lines_b) if len(lines_a) <= len(lines_b) else (lines_b, lines_a)

    used: set[int] = set()
    matched = 0
    for line in shorter:
        best_index = -1
        best_similarity = 0.0
        for index, candidate in enumerate(longer):
            if index in used:
                continue
            similarity = dice_coefficient(line, candidate, ignore_whitespace=False)
            if similarity > best_similarity:
                best_similarity = similarity
                best_index = index
                if similarity == 1.0:
                    break
        if best_index >= 0 and best_similarity > floor:
            used.add(best_index)
            matched += 1

    return matched / len(shorter)


def structural_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the programs' structural pattern sets."""
    patterns_a = extract_structural_patterns(a)
    patterns_b = extract_structural_patterns(b)
    if not patterns_a or not patterns_b:
        return 0.0
    return _jaccard(patterns_a, patterns_b)


def ngrams(code: str, n: int = NGRAM_SIZE) -> set[str]:
    """
    Contiguous n-token windows over whitespace-split tokens.

    Examples:
        >>> sorted(ngrams("a b c d"))
        ['a b c', 'b c d']
    """
    if n <= 0:
        return set()
    tokens = code.split()
    return {" ".join(tokens[i:i + n]) for i in range(len(tokens) - n + 1)}


def ngram_similarity(a: str, b: str, n: int = NGRAM_SIZE) -> float:
    """Jaccard similarity of token n-gram sets."""
    ngrams_a = ngrams(a, n)
    ngrams_b = ngrams(b, n)
    if not ngrams_a or not ngrams_b:
        return 0.0
    return _jaccard(ngrams_a, ngrams_b)


def length_ratio(length_a: int, length_b: int) -> float:
    """
    Ratio of the shorter length to the longer one.

    Examples:
        >>> length_ratio(30, 100)
        0.3
        >>> length_ratio(0, 10)
        0.0
    """
    longest = max(length_a, length_b)
    if longest <= 0:
        return 0.0
    return min(length_a, length_b) / longest
