"""Cross-file best match resolution."""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging
import time
import traceback
from functools import partial
from multiprocessing import Pool

import numpy as np
import pandas as pd

from tabular_matcher.config.models import (
    PERFORMANCE_LIMITS,
    CrossMatchConfig,
    CrossMatchReport,
    ExtraColumns,
    MatchResult,
    Record
)
from tabular_matcher.config.rules import PassthroughRules
from tabular_matcher.core.errors import MatchingError, ProcessingError
from tabular_matcher.core.preprocessor import (
    ValueNormalizer,
    absent_columns,
    is_null,
    to_records
)
from tabular_matcher.core.validator import SimilarityScorer

# (original index, normalized value, record)
TargetEntry = Tuple[int, str, Record]

class CrossFileMatcher:
    """
    Finds, for every row of a source sequence, the most similar row of a
    target sequence on a pair of columns.
    """

    def __init__(self, config: CrossMatchConfig):
        """
        Initialize the cross-file matcher.

        Args:
            config: Matched columns, threshold, algorithm, passthrough
                columns and worker count
        """
        self.config = config
        self._initialize_logging()

    def _initialize_logging(self) -> None:
        """Setup logging configuration."""
        self.logger = logging.getLogger(__name__)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter(
                    '%(asctime)s - %(levelname)s - %(message)s'
                )
            )
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def match(
        self,
        source_data: Union[Sequence[Record], pd.DataFrame],
        target_data: Union[Sequence[Record], pd.DataFrame]
    ) -> CrossMatchReport:
        """
        Match every source row against the target rows.

        Every pair is scored, O(n * m) comparisons in total.

        Args:
            source_data: Rows of the first file
            target_data: Rows of the second file

        Returns:
            CrossMatchReport: One MatchResult per source row, in source order

        Raises:
            InvalidInputError: If either input is empty
            ProcessingError: If scoring fails unexpectedly
        """
        start_time = time.time()
        source_records = to_records(source_data, 'data for file 1')
        target_records = to_records(target_data, 'data for file 2')
        self._validate_columns(source_records, target_records)
        self._warn_if_slow(len(source_records), len(target_records))

        try:
            targets = prepare_targets(target_records, self.config.target_column)
            matches = self._run(source_records, targets)
        except MatchingError:
            raise
        except Exception as e:
            self.logger.error(f"Error matching records: {traceback.format_exc()}")
            raise ProcessingError("Internal error while matching records") from e

        report = CrossMatchReport(
            matches=matches,
            total_file1_rows=len(source_records),
            total_file2_rows=len(target_records)
        )
        self.logger.info(
            f"Matched {report.matched_count} of {report.total_file1_rows} rows "
            f"in {time.time() - start_time:.2f} seconds"
        )
        return report

    def _run(
        self,
        source_records: List[Record],
        targets: List[TargetEntry]
    ) -> List[MatchResult]:
        """Process source rows serially or in contiguous chunks across workers."""
        process = partial(_process_chunk, targets=targets, config=self.config)
        workers = min(self.config.workers, len(source_records))

        if workers <= 1:
            return process((0, source_records))

        chunks = [
            (int(bounds[0]), source_records[bounds[0]:bounds[-1] + 1])
            for bounds in np.array_split(np.arange(len(source_records)), workers)
            if len(bounds)
        ]
        with Pool(processes=workers) as pool:
            results = pool.map(process, chunks)

        return [match for chunk_matches in results for match in chunk_matches]

    def _validate_columns(
        self,
        source_records: List[Record],
        target_records: List[Record]
    ) -> None:
        """Warn about matched columns absent from an entire file."""
        for label, records, column in (
            ('file 1', source_records, self.config.source_column),
            ('file 2', target_records, self.config.target_column),
        ):
            if absent_columns(records, [column]):
                self.logger.warning(
                    f"Column {column} not found in {label}; its rows cannot match"
                )

    def _warn_if_slow(self, source_count: int, target_count: int) -> None:
        limit = PERFORMANCE_LIMITS[self.config.algorithm]
        if source_count * target_count > limit * limit:
            self.logger.warning(
                f"Comparing {source_count} x {target_count} rows with "
                f"{self.config.algorithm.value}; processing may be slow"
            )

def prepare_targets(records: Sequence[Record], column: str) -> List[TargetEntry]:
    """Normalize every target value once."""
    normalizer = ValueNormalizer()
    return [
        (index, normalizer.process(record.get(column)), record)
        for index, record in enumerate(records)
    ]

def find_best_match(
    value: str,
    targets: Sequence[TargetEntry],
    threshold: float,
    scorer: SimilarityScorer
) -> Optional[Tuple[int, float, Record]]:
    """
    Best-scoring target at or above the threshold.

    Empty values never match. The first target wins ties.

    Args:
        value: Normalized source value
        targets: Prepared target entries, in original order
        threshold: Minimum similarity for a match
        scorer: Similarity scorer

    Returns:
        Optional[Tuple[int, float, Record]]: Target index, score and row
    """
    if not value:
        return None

    best_match = None
    for index, target_value, record in targets:
        similarity = scorer.score(value, target_value) if target_value else 0.0
        if similarity >= threshold and (best_match is None or similarity > best_match[1]):
            best_match = (index, similarity, record)

    return best_match

def _process_chunk(
    chunk: Tuple[int, Sequence[Record]],
    targets: Sequence[TargetEntry],
    config: CrossMatchConfig
) -> List[MatchResult]:
    """
    Match a contiguous chunk of source rows.

    Args:
        chunk: Offset of the first row and the rows themselves
        targets: Prepared target entries
        config: Matching configuration

    Returns:
        List[MatchResult]: One result per row of the chunk
    """
    offset, records = chunk
    normalizer = ValueNormalizer()
    scorer = SimilarityScorer(config.algorithm)
    results = []

    for position, row in enumerate(records):
        best_match = find_best_match(
            normalizer.process(row.get(config.source_column)),
            targets,
            config.threshold,
            scorer
        )
        results.append(_create_result_record(offset + position, row, best_match, config))

    return results

def _create_result_record(
    index: int,
    row: Record,
    best_match: Optional[Tuple[int, float, Record]],
    config: CrossMatchConfig
) -> MatchResult:
    """Create a result record with match information."""
    if best_match is None:
        return MatchResult(
            file1_row_index=index,
            file2_row_index=None,
            file1_value=_raw(row.get(config.source_column)),
            file2_value=None,
            score=0,
            file1_additional_data=_passthrough(row, config.source_extra_columns, config.source_column)
        )

    target_index, similarity, target_row = best_match
    return MatchResult(
        file1_row_index=index,
        file2_row_index=target_index,
        file1_value=_raw(row.get(config.source_column)),
        file2_value=_raw(target_row.get(config.target_column)),
        score=similarity,
        file1_additional_data=_passthrough(row, config.source_extra_columns, config.source_column),
        file2_additional_data=_passthrough(target_row, config.target_extra_columns, config.target_column)
    )

def _passthrough(row: Record, extra_columns: ExtraColumns, key_column: str) -> Dict[str, Any]:
    """Copy the requested extra columns of a row."""
    if isinstance(extra_columns, PassthroughRules):
        columns = extra_columns.select(row.keys(), key_column)
    else:
        columns = extra_columns
    return {column: _raw(row.get(column)) for column in columns}

def _raw(value: Any) -> Any:
    return None if is_null(value) else value

def match_across(
    source_data: Union[Sequence[Record], pd.DataFrame],
    target_data: Union[Sequence[Record], pd.DataFrame],
    source_column: str,
    target_column: str,
    **options: Any
) -> CrossMatchReport:
    """
    Find the best target match for every source row.

    Args:
        source_data: Rows of the first file
        target_data: Rows of the second file
        source_column: Column of the first file to compare
        target_column: Column of the second file to compare
        **options: Remaining CrossMatchConfig fields (threshold, algorithm, ...)

    Returns:
        CrossMatchReport: One MatchResult per source row
    """
    config = CrossMatchConfig(
        source_column=source_column,
        target_column=target_column,
        **options
    )
    return CrossFileMatcher(config).match(source_data, target_data)
