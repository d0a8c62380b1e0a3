"""
Program text extraction from submitted files.

Submissions are usually Jupyter notebooks: a JSON document holding an
ordered list of cells. Only code cells are kept. Plain source files
(.py and friends) are passed through unchanged.
"""
import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import MalformedDocument

logger = logging.getLogger(__name__)

NOTEBOOK_SUFFIX = ".ipynb"
CELL_SEPARATOR = "\n\n"


def _cell_text(cell: dict[str, Any]) -> str:
    """Join a cell's source fragments (list of lines or a single string)."""
    source = cell.get("source")
    if isinstance(source, list):
        return "".join(part for part in source if isinstance(part, str))
    if isinstance(source, str):
        return source
    return ""


def extract_code_from_text(text: str, source: str = "<memory>") -> str:
    """
    Extract program text from notebook JSON.

    Args:
        text: Raw notebook document
        source: Name used in log and error messages

    Returns:
        Code cells joined with a blank line, or "" if there is no code

    Raises:
        MalformedDocument: If the text is not a notebook with a cells list

    Examples:
        >>> doc = '{"cells": [{"cell_type": "code", "source": ["x = 1\\\\n", "y = 2"]}]}'
        >>> extract_code_from_text(doc)
        'x = 1\\ny = 2'
    """
    if not text or not text.strip():
        return ""

    try:
        notebook = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocument(source, f"invalid JSON ({e.msg} at line {e.lineno})") from e

    if not isinstance(notebook, dict):
        raise MalformedDocument(source, "top-level value is not an object")

    cells = notebook.get("cells")
    if not isinstance(cells, list):
        raise MalformedDocument(source, "missing 'cells' list")

    code_cells = []
    for cell in cells:
        if not isinstance(cell, dict) or cell.get("cell_type") != "code":
            continue
        content = _cell_text(cell)
        if content.strip():
            code_cells.append(content)

    result = CELL_SEPARATOR.join(code_cells)
    logger.debug(f"Extracted {len(code_cells)} code cells from {source}, total length: {len(result)}")
    return result


def extract_code(text: str, filename: str) -> str:
    """
    Extract program text according to the file type.

    Notebooks go through the cell parser, anything else is already
    program text.

    Args:
        text: File content
        filename: Original file name, used to pick the parser

    Returns:
        Program text ("" if there is none)
    """
    if filename.lower().endswith(NOTEBOOK_SUFFIX):
        return extract_code_from_text(text, source=filename)
    return text or ""


def extract_code_from_notebook(path: str | Path) -> str:
    """
    Read a notebook from disk and extract its code.

    Missing, unreadable and empty files yield "" so callers can skip
    them; a corrupt document still raises MalformedDocument.

    Args:
        path: Path to the .ipynb file

    Returns:
        Extracted program text or ""
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"File does not exist: {path}")
        return ""

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Error reading notebook {path}: {e}")
        return ""

    if not content.strip():
        logger.warning(f"File is empty: {path}")
        return ""

    return extract_code_from_text(content, source=str(path))
