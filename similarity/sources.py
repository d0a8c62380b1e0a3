"""
Content suppliers for submitted files.

The detector never touches storage directly: it asks a SubmissionSource
for the text of each SubmittedFile. PathSource reads from disk (or uses
inline content when the caller supplied it), InMemorySource serves
content from a dict, which is what tests and the HTTP layer use.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping

from .exceptions import EmptyOrMissingContent
from .models import SubmittedFile


class SubmissionSource(ABC):
    """Interface for reading the content of a submitted file."""

    @abstractmethod
    def read(self, submission: SubmittedFile) -> str:
        """
        Return the raw content of a submission.

        :param submission: File to read
        :return: Non-empty file content
        :raises EmptyOrMissingContent: If the content is missing or empty
        """
        pass


class PathSource(SubmissionSource):
    """Reads submissions from the filesystem."""

    def __init__(self, base_dir: str | Path | None = None, encoding: str = "utf-8"):
        self.base_dir = Path(base_dir) if base_dir else None
        self.encoding = encoding

    def _resolve(self, file_path: str) -> Path:
        """
        Resolve a submission path.

        With a base directory, relative paths are taken from it and the
        result must stay inside it.

        Raises:
            EmptyOrMissingContent: If the path escapes the base directory
        """
        path = Path(file_path)
        if self.base_dir is None:
            return path

        if not path.is_absolute():
            path = self.base_dir / path
        resolved = path.resolve()
        if not resolved.is_relative_to(self.base_dir.resolve()):
            raise EmptyOrMissingContent(file_path, "outside the submissions directory", missing=True)
        return resolved

    def read(self, submission: SubmittedFile) -> str:
        if submission.content is not None:
            if not submission.content.strip():
                raise EmptyOrMissingContent(submission.filename, "inline content is empty")
            return submission.content

        if not submission.file_path:
            raise EmptyOrMissingContent(submission.filename, "no file path or content supplied", missing=True)

        path = self._resolve(submission.file_path)
        if not path.is_file():
            raise EmptyOrMissingContent(str(path), "file not found", missing=True)

        try:
            if path.stat().st_size == 0:
                raise EmptyOrMissingContent(str(path), "file is empty")
            content = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise EmptyOrMissingContent(str(path), f"unreadable: {e}") from e

        if not content.strip():
            raise EmptyOrMissingContent(str(path), "file is empty")
        return content


class InMemorySource(SubmissionSource):
    """Serves submission content from a mapping of file_id -> text."""

    def __init__(self, contents: Mapping[str, str]):
        self.contents = dict(contents)

    def read(self, submission: SubmittedFile) -> str:
        content = self.contents.get(submission.file_id)
        if content is None:
            content = submission.content
        if content is None:
            raise EmptyOrMissingContent(submission.filename, "no content registered", missing=True)
        if not content.strip():
            raise EmptyOrMissingContent(submission.filename, "content is empty")
        return content
