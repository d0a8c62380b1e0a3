"""
Student identity from upload file names.

Supported naming conventions:
- "Python_(Lab_05) - Ashish Vadher.ipynb"  -> "Ashish Vadher"
- "Assignment1 - John Doe.ipynb"           -> "John Doe"
- "lab7_firstname_lastname.ipynb"          -> "Firstname Lastname"
"""
import re
from dataclasses import dataclass
from pathlib import Path

from .models import SubmittedFile

DEFAULT_PATTERNS = ("*.ipynb", "*.py")

# "<assignment> - <student name>"
DASH_SEPARATED_RE = re.compile(r"\s[-–]\s(?P<name>[^-–]+)$")
# "<lab><n>_<first>_<last>"
UNDERSCORE_RE = re.compile(r"^(?:lab|task|hw|assignment)\s*\d+_(?P<name>[A-Za-zА-Яа-яЁё_]+)$", re.IGNORECASE)


@dataclass
class StudentInfo:
    """Student identity derived from a file name."""
    name: str
    student_id: str


def _title(words: list[str]) -> str:
    return " ".join(word.capitalize() if word.islower() else word for word in words)


def make_student_id(name: str) -> str:
    """
    Build a stable id from a student name.

    Examples:
        >>> make_student_id("Ashish Vadher")
        'ashish_vadher'
    """
    return "_".join(re.findall(r"\w+", name.lower())) or "unknown"


def extract_student_info(filename: str) -> StudentInfo:
    """
    Extract student name and id from an upload file name.

    Args:
        filename: Original file name, with or without directories

    Returns:
        StudentInfo; falls back to the file stem when no convention matches

    Examples:
        >>> extract_student_info("Assignment1 - John Doe.ipynb").name
        'John Doe'
        >>> extract_student_info("lab7_firstname_lastname.ipynb")
        StudentInfo(name='Firstname Lastname', student_id='firstname_lastname')
    """
    stem = Path(filename).stem.strip()

    match = DASH_SEPARATED_RE.search(stem)
    if match:
        name = " ".join(match.group("name").split())
    else:
        match = UNDERSCORE_RE.match(stem)
        if match:
            name = _title([part for part in match.group("name").split("_") if part])
        else:
            name = " ".join(re.split(r"[\s_]+", stem)).strip()

    name = name or "Unknown"
    return StudentInfo(name=name, student_id=make_student_id(name))


def discover_submissions(
    directory: str | Path,
    patterns: tuple[str, ...] = DEFAULT_PATTERNS,
) -> list[SubmittedFile]:
    """
    Build SubmittedFile records for every submission in a directory.

    Files are ordered by name; upload_order starts at 1.

    Args:
        directory: Folder holding one file per submission
        patterns: Glob patterns of files to include

    Returns:
        List of SubmittedFile

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Submissions directory not found: {directory}")

    paths = sorted({path for pattern in patterns for path in directory.glob(pattern) if path.is_file()})

    submissions = []
    for order, path in enumerate(paths, 1):
        info = extract_student_info(path.name)
        submissions.append(SubmittedFile(
            file_id=path.name,
            student_name=info.name,
            student_id=info.student_id,
            filename=path.name,
            file_path=str(path),
            upload_order=order,
        ))
    return submissions
