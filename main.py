from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from dotenv import load_dotenv
from pathlib import Path
from typing import List, Optional
import os
import logging

from similarity import (
    PlagiarismDetector,
    PathSource,
    SubmittedFile,
    AnalysisRun,
    PairComparison,
    ConfigError,
    InvalidRunRequest,
    discover_submissions,
    extract_student_info,
    load_config,
)

load_dotenv()

# Configure logging to both file and console
LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# Set log level from environment (default: INFO)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, LOG_LEVEL, logging.INFO)

log_formatter = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

root_logger = logging.getLogger()
root_logger.setLevel(log_level)

# Console handler (for docker logs)
console_handler = logging.StreamHandler()
console_handler.setFormatter(log_formatter)
root_logger.addHandler(console_handler)

# File handler (persistent logs)
log_file = os.path.join(LOG_DIR, "plagiarism.log")
file_handler = logging.FileHandler(log_file, encoding='utf-8')
file_handler.setFormatter(log_formatter)
root_logger.addHandler(file_handler)

# Configure uvicorn loggers to use the same format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    logging.getLogger(uvicorn_logger_name).handlers = [console_handler, file_handler]

logger = logging.getLogger(__name__)
logger.info(f"Logging initialized. Log file: {log_file}")

# Root for submission files and directories. When set, requests cannot
# read outside it; when unset, any path readable by the service is accepted.
SUBMISSIONS_DIR = os.getenv("SUBMISSIONS_DIR")

app = FastAPI(title="Plagiarism Control")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
    files: Optional[List[SubmittedFile]] = None
    directory: Optional[str] = None
    threshold: Optional[float] = None
    mode: Optional[str] = None
    normalize_identifiers: Optional[bool] = None
    max_files: Optional[int] = Field(default=None, ge=1)
    max_matching_lines: Optional[int] = Field(default=None, ge=0)


class CompareRequest(BaseModel):
    file_a: SubmittedFile
    file_b: SubmittedFile
    mode: Optional[str] = None
    normalize_identifiers: Optional[bool] = None


class ExtractStudentRequest(BaseModel):
    filename: str = Field(..., min_length=1)


def build_detector(**overrides) -> PlagiarismDetector:
    """Create a detector from file/env config plus request overrides."""
    try:
        config = load_config(**overrides)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PlagiarismDetector(config, PathSource(base_dir=SUBMISSIONS_DIR))


def resolve_directory(directory: str) -> Path:
    """Resolve a requested submissions directory, confined to SUBMISSIONS_DIR when set."""
    if not SUBMISSIONS_DIR:
        return Path(directory)
    base = Path(SUBMISSIONS_DIR).resolve()
    path = (base / directory).resolve()
    if not path.is_relative_to(base):
        raise HTTPException(status_code=403, detail="Directory is outside the submissions directory")
    return path


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.post("/api/analyze", response_model=AnalysisRun)
def analyze(data: AnalyzeRequest):
    """
    Run plagiarism analysis over a batch of submissions.

    Files are given either explicitly or as a directory to scan.
    """
    if data.files is None and not data.directory:
        raise HTTPException(status_code=400, detail="Either 'files' or 'directory' is required")

    files = data.files
    if files is None:
        try:
            files = discover_submissions(resolve_directory(data.directory))
        except FileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    detector = build_detector(
        threshold=data.threshold,
        mode=data.mode,
        normalize_identifiers=data.normalize_identifiers,
        max_files_per_run=data.max_files,
        max_matching_lines_per_pair=data.max_matching_lines,
    )

    logger.info(f"Starting analysis of {len(files)} files with threshold {detector.config.threshold}")
    try:
        run = detector.analyze(files)
    except InvalidRunRequest as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Analysis {run.id} completed in {run.duration_ms}ms. Found {run.total_matches} matches")
    return run


@app.post("/api/compare", response_model=PairComparison)
def compare(data: CompareRequest):
    """Side-by-side comparison of two submissions."""
    detector = build_detector(mode=data.mode, normalize_identifiers=data.normalize_identifiers)
    return detector.compare_pair(data.file_a, data.file_b)


@app.post("/api/extract-student")
def extract_student(data: ExtractStudentRequest):
    info = extract_student_info(data.filename)
    return {
        "filename": data.filename,
        "student_name": info.name,
        "student_id": info.student_id,
    }
