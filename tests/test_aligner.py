"""
Unit tests for similarity/aligner.py

Tests line-level evidence for flagged pairs.
"""
from similarity.aligner import find_matching_lines


class TestFindMatchingLines:
    """Tests for find_matching_lines function."""

    def test_basic_alignment(self):
        matches = find_matching_lines("x = compute(a)\nprint(x)", "print(x)\ny = compute(a)")
        assert [(m.line_a, m.line_b, m.similarity) for m in matches] == [(2, 1, 100.0), (1, 2, 92.3)]
        assert matches[0].code == "print(x)"

    def test_target_lines_never_reused(self):
        """Every line of B is claimed at most once."""
        a = "print(x)\nprint(x)\nprint(x)"
        b = "print(x)\nprint(y)"
        matches = find_matching_lines(a, b, min_similarity=0.0)
        line_b = [m.line_b for m in matches]
        assert len(line_b) == len(set(line_b))
        assert len(matches) == 2

    def test_sorted_descending(self):
        a = "value = total(a)\nprint(x)\nreturn result"
        b = "return results\nprint(x)\nvalue = totals(a)"
        sims = [m.similarity for m in find_matching_lines(a, b)]
        assert sims == sorted(sims, reverse=True)
        assert sims[0] == 100.0

    def test_floor_is_strict(self):
        """A candidate exactly at the floor is rejected."""
        # 'abcdef' vs 'abcxyz': 2 shared bigrams of 5 + 5 -> 0.4
        assert find_matching_lines("abcdef", "abcxyz", min_similarity=0.4) == []
        assert len(find_matching_lines("abcdef", "abcxyz", min_similarity=0.39)) == 1

    def test_max_matches(self):
        code = "\n".join(f"line_{i} = {i}" for i in range(10))
        assert len(find_matching_lines(code, code, max_matches=3)) == 3
        assert find_matching_lines(code, code, max_matches=0) == []

    def test_short_lines_ignored_and_numbering(self):
        """Line numbers count only lines longer than two characters."""
        a = "x\n)\nprint(x)"
        b = "ab\nprint(x)"
        matches = find_matching_lines(a, b)
        assert [(m.line_a, m.line_b) for m in matches] == [(1, 1)]

    def test_empty_inputs(self):
        assert find_matching_lines("", "print(x)") == []
        assert find_matching_lines("print(x)", "") == []

    def test_greedy_first_come(self):
        """An earlier A line keeps the B line it claimed even if a later A line fits better."""
        a = "print(value)\nprint(value1)"
        b = "print(value1)"
        matches = find_matching_lines(a, b)
        assert len(matches) == 1
        assert matches[0].line_a == 1
        assert matches[0].similarity < 100.0
