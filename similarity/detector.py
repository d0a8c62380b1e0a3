"""
Batch plagiarism detection orchestrator.

This module provides the PlagiarismDetector class that runs one analysis
over a batch of submissions: validation, extraction and normalization of
every file, pairwise comparison, and ranking with statistics.

A run moves through VALIDATING -> NORMALIZING -> COMPARING -> RANKING -> DONE
without retries. A broken submission is recorded as skipped and never stops
the rest of the batch.
"""
import hashlib
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Iterable

from .aligner import find_matching_lines
from .config import DetectionConfig
from .exceptions import (
    EmptyOrMissingContent,
    InsufficientFiles,
    InvalidRunRequest,
    MalformedDocument,
)
from .extractor import extract_code
from .models import (
    AnalysisRun,
    PairComparison,
    PairResult,
    ProcessedFile,
    RiskBand,
    RunStatistics,
    SkippedFile,
    SkipReason,
    SubmittedFile,
)
from .normalizer import normalize_code
from .scorer import ScoringMode, SimilarityScorer, match_floor, to_percent
from .sources import PathSource, SubmissionSource

logger = logging.getLogger(__name__)


class RunPhase(Enum):
    """Stage of an analysis run."""
    IDLE = "idle"
    VALIDATING = "validating"
    NORMALIZING = "normalizing"
    COMPARING = "comparing"
    RANKING = "ranking"
    DONE = "done"


@dataclass
class FileOutcome:
    """Result of processing one submission (worker side, before aggregation)."""
    submission: SubmittedFile
    raw_code: str = ""
    normalized_code: str = ""
    content_hash: str = ""
    skipped: SkippedFile | None = None


def compute_content_hash(normalized_code: str) -> str:
    """
    Fingerprint normalized code for exact-duplicate detection.

    Not a security measure: md5 is only used as a fast, stable key.
    """
    return hashlib.md5(normalized_code.encode("utf-8")).hexdigest()


def classify_risk(score: float, config: DetectionConfig) -> RiskBand:
    """
    Map a [0, 1] score to a reporting risk band.

    Examples:
        >>> classify_risk(0.85, DetectionConfig())
        <RiskBand.HIGH: 'high'>
        >>> classify_risk(0.8, DetectionConfig())
        <RiskBand.MEDIUM: 'medium'>
        >>> classify_risk(0.5, DetectionConfig())
        <RiskBand.MEDIUM: 'medium'>
    """
    if score > config.risk_high:
        return RiskBand.HIGH
    if score >= config.risk_medium:
        return RiskBand.MEDIUM
    return RiskBand.LOW


def rank_results(results: Iterable[PairResult]) -> list[PairResult]:
    """Sort pair results by descending similarity, keeping comparison order on ties."""
    return sorted(results, key=lambda r: r.similarity, reverse=True)


def compute_statistics(results: list[PairResult]) -> RunStatistics:
    """
    Aggregate statistics over reported pairs.

    Args:
        results: Pair results of a run

    Returns:
        RunStatistics (all zero for an empty list)
    """
    if not results:
        return RunStatistics()

    similarities = [r.similarity for r in results]
    return RunStatistics(
        exact_duplicates=sum(1 for r in results if r.is_exact_duplicate),
        high_risk=sum(1 for r in results if r.risk_band is RiskBand.HIGH),
        medium_risk=sum(1 for r in results if r.risk_band is RiskBand.MEDIUM),
        low_risk=sum(1 for r in results if r.risk_band is RiskBand.LOW),
        avg_similarity=round(sum(similarities) / len(similarities), 2),
        max_similarity=max(similarities),
    )


class PlagiarismDetector:
    """
    Runs plagiarism analysis over a batch of submissions.

    The content-hash map used for duplicate tracking belongs to the
    instance and is reset at the start and end of every run, so separate
    detector instances can run concurrently. One instance must not run
    two analyses at the same time.
    """

    def __init__(
        self,
        config: DetectionConfig | None = None,
        source: SubmissionSource | None = None,
    ):
        """
        Initialize detector.

        Args:
            config: Detection settings (defaults when omitted)
            source: Where file content is read from (filesystem by default)
        """
        self.config = config or DetectionConfig()
        self.source = source or PathSource()
        self.phase = RunPhase.IDLE
        self._hashes: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Validating / normalizing
    # ------------------------------------------------------------------

    def _skip(self, submission: SubmittedFile, reason: SkipReason, detail: str) -> FileOutcome:
        logger.warning(f"Skipping {submission.filename} ({submission.student_name}): {reason.value} - {detail}")
        return FileOutcome(
            submission=submission,
            skipped=SkippedFile(
                file_id=submission.file_id,
                filename=submission.filename,
                reason=reason,
                detail=detail,
            ),
        )

    def process_file(self, submission: SubmittedFile) -> FileOutcome:
        """
        Read, extract, normalize and hash one submission.

        Pure apart from reading the file, so it may run on worker threads.
        Never raises for per-file problems: they come back as a skipped outcome.

        Args:
            submission: File to process

        Returns:
            FileOutcome with normalized code or a skip record
        """
        try:
            content = self.source.read(submission)
            raw_code = extract_code(content, submission.filename)
        except EmptyOrMissingContent as e:
            reason = SkipReason.MISSING if e.missing else SkipReason.EMPTY
            return self._skip(submission, reason, e.reason)
        except MalformedDocument as e:
            return self._skip(submission, SkipReason.MALFORMED, e.reason)
        except Exception as e:
            logger.exception(f"Error processing file {submission.filename}")
            return self._skip(submission, SkipReason.ERROR, str(e))

        if not raw_code.strip():
            return self._skip(submission, SkipReason.EMPTY, "no code cells")

        if len(raw_code.strip()) < self.config.min_code_length:
            return self._skip(
                submission,
                SkipReason.INSUFFICIENT_CODE,
                f"{len(raw_code.strip())} chars of code, need {self.config.min_code_length}",
            )

        normalized = normalize_code(raw_code, self.config.normalize_identifiers)
        if not normalized or len(normalized) < self.config.min_normalized_length:
            return self._skip(
                submission,
                SkipReason.INSUFFICIENT_CODE,
                f"{len(normalized)} chars after normalization, need {self.config.min_normalized_length}",
            )

        return FileOutcome(
            submission=submission,
            raw_code=raw_code,
            normalized_code=normalized,
            content_hash=compute_content_hash(normalized),
        )

    def _register(self, outcome: FileOutcome) -> ProcessedFile:
        """Record the file's hash (first writer wins) and build its ProcessedFile."""
        submission = outcome.submission
        first_owner = self._hashes.setdefault(outcome.content_hash, submission.file_id)
        return ProcessedFile(
            file_id=submission.file_id,
            student_name=submission.student_name,
            student_id=submission.student_id,
            filename=submission.filename,
            upload_order=submission.upload_order,
            raw_code=outcome.raw_code,
            normalized_code=outcome.normalized_code,
            content_hash=outcome.content_hash,
            code_length=len(outcome.normalized_code),
            duplicate_of=None if first_owner == submission.file_id else first_owner,
        )

    def process_files(
        self,
        files: list[SubmittedFile],
    ) -> tuple[list[ProcessedFile], list[SkippedFile]]:
        """
        Process files in fixed-size groups, reading each group concurrently.

        Aggregation (hash map, result lists) happens on the calling thread
        in input order, so grouping has no effect on the outcome.

        Args:
            files: Submissions to process

        Returns:
            Tuple of (valid processed files, skipped files)
        """
        processed: list[ProcessedFile] = []
        skipped: list[SkippedFile] = []
        if not files:
            return processed, skipped

        batch_size = self.config.batch_size
        with ThreadPoolExecutor(max_workers=min(batch_size, len(files))) as executor:
            for start in range(0, len(files), batch_size):
                batch = files[start:start + batch_size]
                for outcome in executor.map(self.process_file, batch):
                    if outcome.skipped is not None:
                        skipped.append(outcome.skipped)
                        continue
                    processed_file = self._register(outcome)
                    processed.append(processed_file)
                    logger.debug(f"Processed: {processed_file.student_name} ({processed_file.code_length} chars)")

        logger.info(f"Processed {len(processed)} files, skipped {len(skipped)} files")
        return processed, skipped

    def _cap_files(self, files: list[SubmittedFile]) -> list[SubmittedFile]:
        """Keep the first max_files_per_run files by upload order."""
        ordered = sorted(files, key=lambda f: f.upload_order)
        if len(ordered) > self.config.max_files_per_run:
            logger.warning(
                f"Batch of {len(ordered)} files capped to the first {self.config.max_files_per_run} by upload order"
            )
            ordered = ordered[:self.config.max_files_per_run]
        return ordered

    def _drop_repeated_ids(self, ordered: list[SubmittedFile]) -> tuple[list[SubmittedFile], list[SkippedFile]]:
        selected = []
        skipped = []
        seen_ids: set[str] = set()
        for submission in ordered:
            if submission.file_id in seen_ids:
                skipped.append(self._skip(submission, SkipReason.ERROR, "duplicate file id").skipped)
                continue
            seen_ids.add(submission.file_id)
            selected.append(submission)
        return selected, skipped

    # ------------------------------------------------------------------
    # Comparing
    # ------------------------------------------------------------------

    def _build_result(
        self,
        file_a: ProcessedFile,
        file_b: ProcessedFile,
        score: float,
        is_exact_duplicate: bool,
        mode: ScoringMode,
    ) -> PairResult:
        matching_lines = find_matching_lines(
            file_a.normalized_code,
            file_b.normalized_code,
            max_matches=self.config.max_matching_lines_per_pair,
            min_similarity=match_floor(mode),
        )
        return PairResult(
            file_a_id=file_a.file_id,
            student_a=file_a.student_name,
            student_a_id=file_a.student_id,
            file_b_id=file_b.file_id,
            student_b=file_b.student_name,
            student_b_id=file_b.student_id,
            similarity=to_percent(score),
            is_exact_duplicate=is_exact_duplicate,
            matching_lines=matching_lines,
            total_matches=len(matching_lines),
            code_length_a=file_a.code_length,
            code_length_b=file_b.code_length,
            risk_band=classify_risk(score, self.config),
        )

    def score_pair(
        self,
        file_a: ProcessedFile,
        file_b: ProcessedFile,
        scorer: SimilarityScorer,
    ) -> tuple[float, bool, bool]:
        """
        Score one pair of processed files.

        Args:
            file_a: First file
            file_b: Second file
            scorer: Scorer configured for the run's mode

        Returns:
            Tuple of (score, is_exact_duplicate, early_exit)
        """
        if file_a.content_hash == file_b.content_hash:
            return 1.0, True, False
        if not scorer.passes_length_filter(file_a.code_length, file_b.code_length):
            return 0.0, False, True
        return scorer.score(file_a.normalized_code, file_b.normalized_code), False, False

    def _compare_all(
        self,
        processed: list[ProcessedFile],
        mode: ScoringMode,
    ) -> tuple[list[PairResult], int, int]:
        scorer = SimilarityScorer(mode)
        threshold = self.config.threshold
        total = len(processed) * (len(processed) - 1) // 2

        results: list[PairResult] = []
        comparisons = 0
        early_exits = 0

        for file_a, file_b in combinations(processed, 2):
            comparisons += 1
            if comparisons % 100 == 0:
                logger.info(f"Progress: {comparisons}/{total} comparisons")

            score, is_exact, early_exit = self.score_pair(file_a, file_b, scorer)
            if early_exit:
                early_exits += 1
            if is_exact:
                logger.info(f"Exact duplicate found: {file_a.student_name} vs {file_b.student_name}")

            if score >= threshold:
                results.append(self._build_result(file_a, file_b, score, is_exact, mode))
                logger.debug(f"Match: {file_a.student_name} vs {file_b.student_name} ({to_percent(score)}%)")
            else:
                logger.debug(f"Below threshold: {file_a.student_name} vs {file_b.student_name} ({to_percent(score)}%)")

        return results, comparisons, early_exits

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, files: list[SubmittedFile] | None) -> AnalysisRun:
        """
        Run plagiarism analysis over a batch of submissions.

        Fewer than two valid files is not an error: the run completes
        with an empty result list.

        Args:
            files: Submitted files; order does not matter, upload_order does

        Returns:
            AnalysisRun with ranked results and statistics

        Raises:
            InvalidRunRequest: If files is None
        """
        if files is None:
            raise InvalidRunRequest("File list is required")

        started = time.monotonic()
        self._hashes = {}
        try:
            logger.info(f"Starting plagiarism detection for {len(files)} files...")

            self.phase = RunPhase.VALIDATING
            considered = self._cap_files(list(files))
            selected, skipped = self._drop_repeated_ids(considered)

            self.phase = RunPhase.NORMALIZING
            processed, normalize_skipped = self.process_files(selected)
            skipped.extend(normalize_skipped)

            mode = self.config.resolve_mode(len(processed))
            run = AnalysisRun(
                threshold=self.config.threshold,
                mode=mode.value,
                normalize_identifiers=self.config.normalize_identifiers,
                submitted_files=len(files),
                total_files=len(considered),
                truncated=len(considered) < len(files),
                valid_files=len(processed),
                skipped=skipped,
            )

            if len(processed) < 2:
                logger.warning(f"{InsufficientFiles(len(processed))}; returning empty result set")
                self.phase = RunPhase.DONE
                run.duration_ms = int((time.monotonic() - started) * 1000)
                return run

            logger.info(f"Comparing {len(processed)} files in {mode.value} mode")
            self.phase = RunPhase.COMPARING
            results, comparisons, early_exits = self._compare_all(processed, mode)

            self.phase = RunPhase.RANKING
            ranked = rank_results(results)
            statistics = compute_statistics(ranked)

            run.results = ranked
            run.total_comparisons = comparisons
            run.early_exits = early_exits
            run.total_matches = len(ranked)
            run.statistics = statistics
            run.duration_ms = int((time.monotonic() - started) * 1000)

            self.phase = RunPhase.DONE
            logger.info(
                f"Analysis complete! Found {len(ranked)} potential matches out of {comparisons} comparisons "
                f"(exact: {statistics.exact_duplicates}, high: {statistics.high_risk}, "
                f"medium: {statistics.medium_risk}, max: {statistics.max_similarity}%)"
            )
            return run
        finally:
            self._hashes = {}

    def compare_pair(self, file_a: SubmittedFile, file_b: SubmittedFile) -> PairComparison:
        """
        Compare two submissions side by side, ignoring the threshold.

        Args:
            file_a: First submission
            file_b: Second submission

        Returns:
            PairComparison with both extracted sources; result is None when
            either file could not be processed
        """
        self._hashes = {}
        try:
            outcome_a = self.process_file(file_a)
            outcome_b = self.process_file(file_b)
            skipped = [o.skipped for o in (outcome_a, outcome_b) if o.skipped is not None]

            comparison = PairComparison(
                file_a=file_a,
                file_b=file_b,
                code_a=outcome_a.raw_code,
                code_b=outcome_b.raw_code,
                skipped=skipped,
            )
            if skipped:
                return comparison

            processed_a = self._register(outcome_a)
            processed_b = self._register(outcome_b)
            mode = self.config.mode or ScoringMode.THOROUGH
            score, is_exact, _ = self.score_pair(processed_a, processed_b, SimilarityScorer(mode))
            comparison.result = self._build_result(processed_a, processed_b, score, is_exact, mode)
            return comparison
        finally:
            self._hashes = {}
