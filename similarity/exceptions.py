"""
Error taxonomy for the similarity engine.

Per-file errors (MalformedDocument, EmptyOrMissingContent) are recorded
as skipped files by the detector and never abort a run.
NormalizationFailure is only logged: the normalizer degrades to partial output.
"""


class PlagiarismError(Exception):
    """Base exception for similarity engine errors."""
    pass


class MalformedDocument(PlagiarismError):
    """Submission container could not be parsed as a notebook."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Malformed document {source}: {reason}")


class EmptyOrMissingContent(PlagiarismError):
    """Submission has no usable code (missing file, empty file or no code cells)."""

    def __init__(self, source: str, reason: str = "no usable content", missing: bool = False):
        self.source = source
        self.reason = reason
        self.missing = missing  # nothing to read at all, as opposed to empty content
        super().__init__(f"{source}: {reason}")


class NormalizationFailure(PlagiarismError):
    """Internal fault in one of the normalization stages."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Normalization stage '{stage}' failed: {cause}")


class InsufficientFiles(PlagiarismError):
    """Fewer than two valid files are left after filtering."""

    def __init__(self, valid_files: int):
        self.valid_files = valid_files
        super().__init__(f"At least 2 valid files are required, got {valid_files}")


class InvalidRunRequest(PlagiarismError):
    """Caller-supplied run input is absent or unusable."""
    pass


class ConfigError(PlagiarismError):
    """Detection configuration is invalid."""
    pass
