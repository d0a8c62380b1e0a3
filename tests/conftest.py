"""
Pytest configuration and shared fixtures for testing.
"""
import json
import pytest
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from similarity.models import SubmittedFile


ADD_NUMBERS = '''def add_numbers(first, second):
    """Return the sum of two numbers."""
    total = first + second  # compute
    return total

result = add_numbers(10, 20)
print("Result:", result)
'''

# Same program with renamed identifiers, other comments and messages
ADD_NUMBERS_RENAMED = '''def sum_values(a_val, b_val):
    # adds values
    out = a_val + b_val
    return out

answer = sum_values(10, 20)
print("Answer is", answer)
'''

BUBBLE_SORT = '''class Sorter:
    def __init__(self, items):
        self.items = list(items)

    def sort(self):
        data = self.items
        for i in range(len(data)):
            for j in range(len(data) - i - 1):
                if data[j] > data[j + 1]:
                    data[j], data[j + 1] = data[j + 1], data[j]
        return data

try:
    print(Sorter([3, 1, 2]).sort())
except ValueError as error:
    print("failed", error)
'''


def make_notebook(*cells):
    """
    Build notebook JSON from (cell_type, source) tuples.

    A plain string is treated as a code cell.
    """
    nb_cells = []
    for cell in cells:
        cell_type, source = ("code", cell) if isinstance(cell, str) else cell
        nb_cells.append({
            "cell_type": cell_type,
            "metadata": {},
            "source": source.splitlines(keepends=True),
        })
    return json.dumps({"cells": nb_cells, "metadata": {}, "nbformat": 4, "nbformat_minor": 5})


def make_submission(file_id, content=None, student=None, upload_order=0, file_path=None, filename=None):
    """Build a SubmittedFile with inline content."""
    student = student or f"Student {file_id}"
    return SubmittedFile(
        file_id=file_id,
        student_name=student,
        student_id=student.lower().replace(" ", "_"),
        filename=filename or f"{file_id}.ipynb",
        file_path=file_path,
        content=content,
        upload_order=upload_order,
    )


@pytest.fixture
def notebook_factory(tmp_path):
    """Write notebooks to a temporary directory and return their paths."""
    def _write(name, *cells):
        path = tmp_path / name
        path.write_text(make_notebook(*cells), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def clean_env(monkeypatch):
    """Remove detection settings from the environment."""
    for name in ("PLAGIARISM_CONFIG", "PLAGIARISM_THRESHOLD", "PLAGIARISM_MODE"):
        monkeypatch.delenv(name, raising=False)
    # load_dotenv must not pick up a developer's .env
    monkeypatch.setattr("similarity.config.load_dotenv", lambda *args, **kwargs: False)
