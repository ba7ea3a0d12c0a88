"""Deduplication entry point."""

from typing import Any, Dict, List, Sequence, Union
from urllib.parse import quote
import logging
import time
import traceback

import pandas as pd

from tabular_matcher.config.models import (
    ComparisonMode,
    DedupConfig,
    DedupResult,
    Record
)
from tabular_matcher.core.errors import InvalidInputError, MatchingError, ProcessingError
from tabular_matcher.core.preprocessor import absent_columns, is_null, to_records
from tabular_matcher.core.reducer import reduce_exact, reduce_fuzzy

class RecordDeduplicator:
    """
    Removes exact or near duplicate rows from a single record sequence.
    """

    def __init__(self, config: DedupConfig):
        """
        Initialize the deduplicator.

        Args:
            config: Columns, comparison mode, threshold, algorithm and slice
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

    def deduplicate(self, data: Union[Sequence[Record], pd.DataFrame]) -> DedupResult:
        """
        Deduplicate the configured slice of the input rows.

        Duplicate indexes in the result are relative to the slice.

        Args:
            data: Rows as mappings or a DataFrame

        Returns:
            DedupResult: Unique rows, counts and the duplicate report

        Raises:
            InvalidInputError: If the input or the slice is empty
            ProcessingError: If reduction fails unexpectedly
        """
        start_time = time.time()
        records = self._select_rows(to_records(data))

        for column in absent_columns(records, self.config.columns):
            self.logger.warning(
                f"Column {column} not found in any row; it compares as NULL"
            )
        self._warn_if_slow(len(records))

        try:
            if self.config.mode == ComparisonMode.EXACT:
                reduction = reduce_exact(records, self.config.columns)
            else:
                reduction = reduce_fuzzy(
                    records,
                    self.config.columns,
                    self.config.threshold,
                    self.config.algorithm
                )
            unique_rows = reduction.unique_rows
            if self.config.reference_field:
                unique_rows = [self._annotate(row) for row in unique_rows]
        except MatchingError:
            raise
        except Exception as e:
            self.logger.error(f"Error deduplicating rows: {traceback.format_exc()}")
            raise ProcessingError("Internal error while deduplicating rows") from e

        result = DedupResult(
            unique_rows=unique_rows,
            original_count=len(records),
            duplicates=reduction.duplicates
        )
        self.logger.info(
            f"Deduplication ({self.config.mode.value}) kept {result.unique_count} of "
            f"{result.original_count} rows in {time.time() - start_time:.2f} seconds"
        )
        return result

    def _select_rows(self, records: List[Record]) -> List[Record]:
        """Apply the half-open slice from the configuration."""
        sliced = records[self.config.slice_start:self.config.slice_end]
        if not sliced:
            raise InvalidInputError(
                f"Slice [{self.config.slice_start}, {self.config.slice_end}) "
                f"selects no rows out of {len(records)}"
            )
        return sliced

    def _warn_if_slow(self, row_count: int) -> None:
        limit = self.config.performance_limit
        if row_count > limit:
            label = (
                'exact duplicates' if self.config.mode == ComparisonMode.EXACT
                else self.config.algorithm.value
            )
            self.logger.warning(
                f"Processing {row_count} rows with {label}; "
                f"beyond {limit} rows processing may be slow"
            )

    def _annotate(self, row: Record) -> Dict[str, Any]:
        """Return a copy of the row with the reference link attached."""
        merged = ' '.join(
            '' if is_null(row.get(column)) else str(row.get(column))
            for column in self.config.columns
        )
        annotated = dict(row)
        annotated[self.config.reference_field] = self.config.reference_url_template.format(
            value=quote(merged)
        )
        return annotated

def deduplicate(
    data: Union[Sequence[Record], pd.DataFrame],
    columns: Sequence[str],
    **options: Any
) -> DedupResult:
    """
    Deduplicate rows on the selected columns.

    Args:
        data: Rows as mappings or a DataFrame
        columns: Selected columns, in signature order
        **options: Remaining DedupConfig fields (mode, threshold, algorithm, ...)

    Returns:
        DedupResult: Unique rows, counts and the duplicate report
    """
    return RecordDeduplicator(DedupConfig(columns=columns, **options)).deduplicate(data)
