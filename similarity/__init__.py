"""
Code similarity engine for plagiarism detection in lab submissions.

This package contains the building blocks of an analysis run:
- extractor: Pull code cells out of notebooks
- normalizer: Canonicalize code before comparison
- patterns: Structural line classification
- metrics: Individual similarity signals
- scorer: Blend signals into one score (thorough / fast presets)
- aligner: Line-level evidence for flagged pairs
- sources: Where submission content is read from
- students: Student identity from file names
- config: Detection settings
- detector: Orchestrator for a batch analysis run
"""

from .exceptions import (
    PlagiarismError,
    MalformedDocument,
    EmptyOrMissingContent,
    NormalizationFailure,
    InsufficientFiles,
    InvalidRunRequest,
    ConfigError,
)

from .extractor import (
    extract_code,
    extract_code_from_text,
    extract_code_from_notebook,
)

from .normalizer import (
    normalize_code,
    remove_comments,
    mask_string_literals,
    normalize_whitespace,
    normalize_identifiers,
)

from .patterns import (
    PatternKind,
    StructuralPattern,
    classify_line,
    extract_structural_patterns,
)

from .scorer import (
    ScoringMode,
    SimilarityScorer,
    match_floor,
    to_percent,
)

from .aligner import find_matching_lines

from .models import (
    SubmittedFile,
    ProcessedFile,
    MatchingLine,
    PairResult,
    RiskBand,
    SkipReason,
    SkippedFile,
    RunStatistics,
    AnalysisRun,
    PairComparison,
)

from .sources import (
    SubmissionSource,
    PathSource,
    InMemorySource,
)

from .students import (
    StudentInfo,
    extract_student_info,
    discover_submissions,
)

from .config import (
    DetectionConfig,
    load_config,
    build_config,
)

from .detector import (
    PlagiarismDetector,
    RunPhase,
    compute_content_hash,
)

__all__ = [
    # exceptions
    "PlagiarismError",
    "MalformedDocument",
    "EmptyOrMissingContent",
    "NormalizationFailure",
    "InsufficientFiles",
    "InvalidRunRequest",
    "ConfigError",
    # extractor
    "extract_code",
    "extract_code_from_text",
    "extract_code_from_notebook",
    # normalizer
    "normalize_code",
    "remove_comments",
    "mask_string_literals",
    "normalize_whitespace",
    "normalize_identifiers",
    # patterns
    "PatternKind",
    "StructuralPattern",
    "classify_line",
    "extract_structural_patterns",
    # scorer
    "ScoringMode",
    "SimilarityScorer",
    "match_floor",
    "to_percent",
    # aligner
    "find_matching_lines",
    # models
    "SubmittedFile",
    "ProcessedFile",
    "MatchingLine",
    "PairResult",
    "RiskBand",
    "SkipReason",
    "SkippedFile",
    "RunStatistics",
    "AnalysisRun",
    "PairComparison",
    # sources
    "SubmissionSource",
    "PathSource",
    "InMemorySource",
    # students
    "StudentInfo",
    "extract_student_info",
    "discover_submissions",
    # config
    "DetectionConfig",
    "load_config",
    "build_config",
    # detector
    "PlagiarismDetector",
    "RunPhase",
    "compute_content_hash",
]
