"""
Structural line classification.

A shallow, regex-based view of program structure: each trimmed line is
mapped to a set of coarse categories (conditional, loop, definition, ...)
plus one CALL pattern per distinct called name. This is not a parser; it
only has to be identifier- and whitespace-agnostic.
"""
import re
from dataclasses import dataclass
from enum import Enum


class PatternKind(Enum):
    """Coarse syntactic category of a line."""
    CONDITIONAL = "conditional"
    LOOP = "loop"
    FUNCTION_DEF = "function_def"
    CLASS_DEF = "class_def"
    TRY_BLOCK = "try_block"
    EXCEPT_BLOCK = "except_block"
    IMPORT = "import"
    ASSIGNMENT = "assignment"
    PRINT_CALL = "print_call"
    RETURN_STMT = "return_stmt"
    CALL = "call"  # carries the called name


@dataclass(frozen=True)
class StructuralPattern:
    """One structural feature of a line."""
    kind: PatternKind
    name: str | None = None  # only set for CALL

    def __str__(self) -> str:
        if self.name is not None:
            return f"{self.kind.value}:{self.name}"
        return self.kind.value


CALL_RE = re.compile(r"(\w+)\(")
DEFINITION_RE = re.compile(r"^(?:async\s+)?(?:def|class)\s+(\w+)")
# '=' that is not part of ==, <=, >=, != (augmented assignment counts)
ASSIGNMENT_RE = re.compile(r"(?<![=<>!])=(?!=)")

CONDITIONAL_PREFIXES = ("if ", "elif ", "else:")
LOOP_PREFIXES = ("for ", "while ", "async for ")


def classify_line(line: str) -> frozenset[StructuralPattern]:
    """
    Classify one line of code into structural patterns.

    Args:
        line: A line of (normalized) code, surrounding whitespace ignored

    Returns:
        Set of patterns found on the line, empty for blank lines

    Examples:
        >>> sorted(str(p) for p in classify_line("for i in range(n):"))
        ['call:range', 'loop']
        >>> sorted(str(p) for p in classify_line("def var0(a, b):"))
        ['function_def']
    """
    text = line.strip()
    if not text:
        return frozenset()

    patterns: set[StructuralPattern] = set()

    if text.startswith(CONDITIONAL_PREFIXES):
        patterns.add(StructuralPattern(PatternKind.CONDITIONAL))
    if text.startswith(LOOP_PREFIXES):
        patterns.add(StructuralPattern(PatternKind.LOOP))
    if text.startswith(("def ", "async def ")):
        patterns.add(StructuralPattern(PatternKind.FUNCTION_DEF))
    if text.startswith("class "):
        patterns.add(StructuralPattern(PatternKind.CLASS_DEF))
    if text.startswith("try:"):
        patterns.add(StructuralPattern(PatternKind.TRY_BLOCK))
    if text.startswith("except"):
        patterns.add(StructuralPattern(PatternKind.EXCEPT_BLOCK))
    if text.startswith(("import ", "from ")) or " import " in text:
        patterns.add(StructuralPattern(PatternKind.IMPORT))
    if ASSIGNMENT_RE.search(text):
        patterns.add(StructuralPattern(PatternKind.ASSIGNMENT))
    if "print(" in text:
        patterns.add(StructuralPattern(PatternKind.PRINT_CALL))
    if text.startswith("return") and (len(text) == 6 or not (text[6].isalnum() or text[6] == "_")):
        patterns.add(StructuralPattern(PatternKind.RETURN_STMT))

    # The name being defined is not a call
    defined = DEFINITION_RE.match(text)
    skip_name = defined.group(1) if defined else None
    for match in CALL_RE.finditer(text):
        name = match.group(1)
        if name == skip_name and match.start(1) == defined.start(1):
            continue
        patterns.add(StructuralPattern(PatternKind.CALL, name))

    return frozenset(patterns)


def extract_structural_patterns(code: str) -> set[StructuralPattern]:
    """
    Collect the structural patterns of every line of a program.

    Args:
        code: Program text (normally already normalized)

    Returns:
        Union of the per-line pattern sets
    """
    if not code:
        return set()

    patterns: set[StructuralPattern] = set()
    for line in code.split("\n"):
        patterns |= classify_line(line)
    return patterns
