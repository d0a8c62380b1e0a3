"""
Source normalization before comparison.

Submissions are reduced to a canonical form so that cosmetic edits
(comments, string contents, indentation, renamed variables) do not hide
copied code. The stages always run in the same order:

1. remove_comments        - docstrings and '#' comments
2. mask_string_literals   - "text" -> "", 'text' -> ''
3. normalize_whitespace   - trim lines, drop noise lines
4. normalize_identifiers  - rename user identifiers to var0, var1, ...

String masking must run before the whitespace and identifier stages,
otherwise literal text would be renamed and compared.
"""
import keyword
import logging
import re

from .exceptions import NormalizationFailure

logger = logging.getLogger(__name__)

# Single-line string literals
DOUBLE_QUOTED = r'"(?:\\.|[^"\\\n])*"'
SINGLE_QUOTED = r"'(?:\\.|[^'\\\n])*'"
# Triple-quoted spans (docstrings), may cross lines
TRIPLE_QUOTED = r'"""[\s\S]*?"""' + "|" + r"'''[\s\S]*?'''"

# One left-to-right scan: whichever of docstring, string or comment starts
# first wins, so quotes inside a comment or '#' inside a string are inert
SOURCE_TOKEN_RE = re.compile(
    "(?P<triple>" + TRIPLE_QUOTED + ")"
    + "|(?P<string>" + DOUBLE_QUOTED + "|" + SINGLE_QUOTED + ")"
    + "|(?P<comment>#[^\\n]*)"
)

# Adjacent literals ("a""b", implicit concatenation) are masked as one
STRING_RUN_RE = re.compile("(?:" + DOUBLE_QUOTED + "|" + SINGLE_QUOTED + ")+")

IDENTIFIER_RE = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b")

PLACEHOLDER_PREFIX = "var"

# Names kept as-is: renaming them would erase structure, not naming
EXCLUDED_IDENTIFIERS = frozenset(keyword.kwlist) | frozenset({
    # builtins
    "print", "range", "len", "str", "int", "float", "bool", "list", "dict",
    "set", "tuple", "open", "file", "input", "output", "enumerate", "zip",
    "map", "filter", "sum", "min", "max", "abs", "round", "sorted",
    "reversed", "type", "isinstance", "super", "object", "self",
    # common import aliases
    "np", "pd", "plt", "sns", "tf", "math", "random", "os", "sys", "json",
    "csv", "re",
})


def remove_comments(code: str) -> str:
    """
    Strip docstrings and end-of-line comments.

    Examples:
        >>> remove_comments('x = 1  # set x')
        'x = 1  '
        >>> remove_comments('s = "a # b"')
        's = "a # b"'
    """
    if not code:
        return ""

    # Keep string literals, drop docstrings and comments
    return SOURCE_TOKEN_RE.sub(lambda m: m.group("string") or "", code)


def mask_string_literals(code: str) -> str:
    """
    Replace string contents with an empty literal of the same quote style.

    Prefixes such as f or r are outside the match and survive. Directly
    adjacent literals collapse into one, so the output never contains a
    triple quote.

    Examples:
        >>> mask_string_literals('print(f"Hello {name}", \\'x\\')')
        'print(f"", \\'\\')'
        >>> mask_string_literals('s = "x""y"')
        's = ""'
    """
    if not code:
        return ""

    return STRING_RUN_RE.sub(lambda m: m.group(0)[0] * 2, code)


def normalize_whitespace(code: str) -> str:
    """
    Trim every line and drop lines of one character or less.

    Indentation and blank lines are discarded on purpose.

    Examples:
        >>> normalize_whitespace("def f():\\n    return 1\\n\\n    )\\n")
        'def f():\\nreturn 1'
    """
    if not code:
        return ""

    lines = (line.strip() for line in code.split("\n"))
    return "\n".join(line for line in lines if len(line) > 1)


def normalize_identifiers(code: str) -> str:
    """
    Rename user identifiers to positional placeholders.

    Every identifier longer than one character that is not a keyword,
    builtin or well-known alias gets var0, var1, ... in first-seen order.
    Replacement is done in a single pass, so an original name that looks
    like a placeholder is renamed like any other.

    Examples:
        >>> normalize_identifiers("total = price * count")
        'var0 = var1 * var2'
        >>> normalize_identifiers("for i in range(n): print(i)")
        'for i in range(n): print(i)'
    """
    if not code:
        return ""

    mapping: dict[str, str] = {}
    for token in IDENTIFIER_RE.findall(code):
        if len(token) > 1 and token not in EXCLUDED_IDENTIFIERS and token not in mapping:
            mapping[token] = f"{PLACEHOLDER_PREFIX}{len(mapping)}"

    if not mapping:
        return code

    return IDENTIFIER_RE.sub(lambda m: mapping.get(m.group(0), m.group(0)), code)


def normalize_code(code: str | None, rename_identifiers: bool = True) -> str:
    """
    Apply all normalization stages.

    Never raises: if a stage fails, the failure is logged and the output
    of the last successful stage is returned.

    Args:
        code: Raw program text
        rename_identifiers: Rename identifiers to placeholders

    Returns:
        Normalized text ("" for empty input)

    Examples:
        >>> normalize_code('def add(a, b):\\n    \"\"\"Sum.\"\"\"\\n    return a + b  # done\\n')
        'def var0(a, b):\\nreturn a + b'
    """
    if not code:
        return ""

    stages = [
        ("remove_comments", remove_comments),
        ("mask_string_literals", mask_string_literals),
        ("normalize_whitespace", normalize_whitespace),
    ]
    if rename_identifiers:
        stages.append(("normalize_identifiers", normalize_identifiers))

    result = code
    for name, stage in stages:
        try:
            result = stage(result)
        except Exception as e:
            failure = NormalizationFailure(name, e)
            logger.warning(f"{failure}; returning partial result")
            return result
    return result
