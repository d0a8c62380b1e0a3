from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


# A file accepted for analysis, as supplied by the upload/storage layer
class SubmittedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_id: str
    student_name: str
    student_id: str
    filename: str = "unknown"
    file_path: Optional[str] = None      # Where the engine reads the content from
    content: Optional[str] = None        # Inline content, takes precedence over file_path
    upload_order: int = 0                # Tie-break / provenance only


# Derived per-run record: one per valid file, never mutated
class ProcessedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_id: str
    student_name: str
    student_id: str
    filename: str
    upload_order: int
    raw_code: str
    normalized_code: str
    content_hash: str
    code_length: int                     # Length of normalized_code
    duplicate_of: Optional[str] = None   # file_id of the first file with the same hash


class MatchingLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_a: int                          # 1-based, among significant lines of A
    line_b: int                          # 1-based, among significant lines of B
    code: str
    similarity: float                    # Percent, one decimal


class RiskBand(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Outcome of comparing two files that met the threshold
class PairResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_a_id: str
    student_a: str
    student_a_id: str
    file_b_id: str
    student_b: str
    student_b_id: str
    similarity: float                    # Percent, two decimals
    is_exact_duplicate: bool
    matching_lines: List[MatchingLine] = Field(default_factory=list)
    total_matches: int = 0
    code_length_a: int
    code_length_b: int
    risk_band: RiskBand


class SkipReason(str, Enum):
    MISSING = "missing"
    EMPTY = "empty"
    MALFORMED = "malformed"
    INSUFFICIENT_CODE = "insufficient_code"
    ERROR = "error"


class SkippedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_id: str
    filename: str
    reason: SkipReason
    detail: str = ""


class RunStatistics(BaseModel):
    exact_duplicates: int = 0
    high_risk: int = 0
    medium_risk: int = 0
    low_risk: int = 0
    avg_similarity: float = 0.0
    max_similarity: float = 0.0


# Everything one analysis run produced; persisting it is the caller's job
class AnalysisRun(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    analysis_timestamp: datetime = Field(default_factory=datetime.now)
    threshold: float
    mode: str
    normalize_identifiers: bool

    submitted_files: int = 0             # Before the per-run cap
    total_files: int = 0                 # Considered after the cap
    truncated: bool = False
    valid_files: int = 0
    skipped: List[SkippedFile] = Field(default_factory=list)

    total_comparisons: int = 0
    early_exits: int = 0                 # Pairs rejected by the length-ratio cutoff
    total_matches: int = 0
    results: List[PairResult] = Field(default_factory=list)
    statistics: RunStatistics = Field(default_factory=RunStatistics)
    duration_ms: int = 0


# Side-by-side view of a single pair
class PairComparison(BaseModel):
    file_a: SubmittedFile
    file_b: SubmittedFile
    code_a: str
    code_b: str
    result: Optional[PairResult] = None
    skipped: List[SkippedFile] = Field(default_factory=list)
