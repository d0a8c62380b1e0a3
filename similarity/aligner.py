"""
Line-level evidence for a flagged pair.

The alignment is greedy: lines of A are visited in order and each one
claims the best still-unused line of B. This is not a maximum-weight
bipartite matching; an earlier A line can take a B line that would have
been a better partner for a later one. The cost is O(|A| * |B|) string
comparisons, which is acceptable because alignment only runs for pairs
that already passed the threshold.
"""
from .metrics import MIN_LINE_LENGTH, dice_coefficient
from .models import MatchingLine

DEFAULT_MAX_MATCHES = 30
DEFAULT_MATCH_FLOOR = 0.75


def find_matching_lines(
    code_a: str,
    code_b: str,
    max_matches: int = DEFAULT_MAX_MATCHES,
    min_similarity: float = DEFAULT_MATCH_FLOOR,
) -> list[MatchingLine]:
    """
    Find matching lines between two normalized programs.

    Args:
        code_a: First normalized program
        code_b: Second normalized program
        max_matches: Stop after this many matches
        min_similarity: A candidate must score strictly above this floor

    Returns:
        Matches sorted by descending similarity. Line numbers are 1-based
        positions among the lines longer than MIN_LINE_LENGTH characters.

    Examples:
        >>> matches = find_matching_lines("x = compute(a)\\nprint(x)", "print(x)\\ny = compute(a)")
        >>> [(m.line_a, m.line_b, m.similarity) for m in matches]
        [(2, 1, 100.0), (1, 2, 92.3)]
    """
    if not code_a or not code_b or max_matches <= 0:
        return []

    lines_a = [line.strip() for line in code_a.split("\n")]
    lines_a = [line for line in lines_a if len(line) > MIN_LINE_LENGTH]
    lines_b = [line.strip() for line in code_b.split("\n")]
    lines_b = [line for line in lines_b if len(line) > MIN_LINE_LENGTH]

    matches: list[MatchingLine] = []
    used_b: set[int] = set()

    for i, line_a in enumerate(lines_a):
        if len(matches) >= max_matches:
            break

        best_index = -1
        best_similarity = 0.0
        for j, line_b in enumerate(lines_b):
            if j in used_b:
                continue
            if line_a == line_b:
                similarity = 1.0
            else:
                similarity = dice_coefficient(line_a, line_b, ignore_whitespace=False)
            if similarity > best_similarity and similarity > min_similarity:
                best_similarity = similarity
                best_index = j

        if best_index >= 0:
            used_b.add(best_index)
            matches.append(MatchingLine(
                line_a=i + 1,
                line_b=best_index + 1,
                code=line_a,
                similarity=round(best_similarity * 100, 1),
            ))

    # sorted() is stable: equal similarities keep scan order
    return sorted(matches, key=lambda m: m.similarity, reverse=True)
