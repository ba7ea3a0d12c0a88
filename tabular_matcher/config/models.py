"""Configuration and report models for the record matching system."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from enum import Enum

import pandas as pd

from tabular_matcher.config.rules import PassthroughRules
from tabular_matcher.core.errors import InvalidInputError

Record = Mapping[str, Any]
ExtraColumns = Union[Sequence[str], PassthroughRules]

ISNI_SEARCH_URL = (
    "https://isni.oclc.org/sru/?query=pica.nw+%3D+%22{value}%22"
    "&operation=searchRetrieve&recordSchema=isni-b"
)

class ComparisonMode(str, Enum):
    """How rows are compared during deduplication."""
    EXACT = "exact"
    FUZZY = "fuzzy"

class SimilarityAlgorithm(str, Enum):
    """String similarity algorithms."""
    DICE = "dice"
    JARO_WINKLER = "jaro-winkler"
    LEVENSHTEIN = "levenshtein"

# Row counts above which processing becomes slow, per mode/algorithm
PERFORMANCE_LIMITS = {
    ComparisonMode.EXACT: 1000000,
    SimilarityAlgorithm.LEVENSHTEIN: 4000,
    SimilarityAlgorithm.DICE: 6000,
    SimilarityAlgorithm.JARO_WINKLER: 12000,
}

def _coerce_enum(enum_class, value: Any, label: str):
    try:
        return enum_class(value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_class)
        raise InvalidInputError(
            f"Unknown {label} '{value}' (expected one of: {allowed})"
        ) from None

def _check_threshold(threshold: Any) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidInputError(f"Similarity threshold must be a number, got {threshold!r}")
    if pd.isna(threshold) or not 0.0 <= threshold <= 1.0:
        raise InvalidInputError(
            f"Similarity threshold must be between 0 and 1, got {threshold}"
        )
    return float(threshold)

def _check_columns(columns: Any, label: str) -> List[str]:
    if isinstance(columns, str) or not isinstance(columns, Sequence) or not columns:
        raise InvalidInputError(f"No {label} selected")
    if not all(isinstance(col, str) and col for col in columns):
        raise InvalidInputError(f"{label.capitalize()} must be non-empty strings")
    return list(columns)

def _check_extra_columns(columns: Any, label: str) -> ExtraColumns:
    if columns is None:
        return ()
    if isinstance(columns, PassthroughRules):
        return columns
    if isinstance(columns, str) or not isinstance(columns, Sequence):
        raise InvalidInputError(f"{label} must be a list of column names")
    return tuple(columns)

@dataclass(frozen=True)
class DedupConfig:
    """Configuration for deduplicating a single record sequence."""
    columns: Sequence[str]
    mode: ComparisonMode = ComparisonMode.FUZZY
    threshold: float = 0.8
    algorithm: SimilarityAlgorithm = SimilarityAlgorithm.JARO_WINKLER
    slice_start: int = 0
    slice_end: Optional[int] = None
    reference_field: Optional[str] = None
    reference_url_template: str = ISNI_SEARCH_URL

    def __post_init__(self):
        """Coerce enum values and validate ranges."""
        object.__setattr__(self, 'columns', tuple(_check_columns(self.columns, 'columns')))
        object.__setattr__(self, 'mode', _coerce_enum(ComparisonMode, self.mode, 'comparison mode'))
        object.__setattr__(
            self,
            'algorithm',
            _coerce_enum(SimilarityAlgorithm, self.algorithm, 'similarity algorithm')
        )
        object.__setattr__(self, 'threshold', _check_threshold(self.threshold))

        if not isinstance(self.slice_start, int) or self.slice_start < 0:
            raise InvalidInputError(f"Slice start must be a non-negative integer, got {self.slice_start!r}")
        if self.slice_end is not None and (
            not isinstance(self.slice_end, int) or self.slice_end < self.slice_start
        ):
            raise InvalidInputError(
                f"Slice end must be an integer not below slice start, got {self.slice_end!r}"
            )

    @property
    def performance_limit(self) -> int:
        """Row count above which this configuration is expected to be slow."""
        if self.mode == ComparisonMode.EXACT:
            return PERFORMANCE_LIMITS[ComparisonMode.EXACT]
        return PERFORMANCE_LIMITS[self.algorithm]

    @classmethod
    def from_request(cls, payload: Mapping[str, Any]) -> 'DedupConfig':
        """Build a configuration from a camelCase request payload."""
        return cls(
            columns=payload.get('columns'),
            mode=payload.get('comparisonMode') or ComparisonMode.FUZZY,
            threshold=_default(payload.get('similarityThreshold'), 0.8),
            algorithm=payload.get('similarityAlgorithm') or SimilarityAlgorithm.JARO_WINKLER,
            slice_start=_default(payload.get('sliceStart'), 0),
            slice_end=payload.get('sliceEnd'),
            reference_field=payload.get('referenceField'),
        )

@dataclass(frozen=True)
class CrossMatchConfig:
    """Configuration for matching one record sequence against another."""
    source_column: str
    target_column: str
    threshold: float = 0.8
    algorithm: SimilarityAlgorithm = SimilarityAlgorithm.DICE
    source_extra_columns: ExtraColumns = ()
    target_extra_columns: ExtraColumns = ()
    workers: int = 1

    def __post_init__(self):
        """Coerce enum values and validate ranges."""
        for column in (self.source_column, self.target_column):
            if not isinstance(column, str) or not column:
                raise InvalidInputError("Please select a column from each file")
        object.__setattr__(
            self,
            'algorithm',
            _coerce_enum(SimilarityAlgorithm, self.algorithm, 'similarity algorithm')
        )
        object.__setattr__(self, 'threshold', _check_threshold(self.threshold))
        object.__setattr__(
            self,
            'source_extra_columns',
            _check_extra_columns(self.source_extra_columns, 'Source additional columns')
        )
        object.__setattr__(
            self,
            'target_extra_columns',
            _check_extra_columns(self.target_extra_columns, 'Target additional columns')
        )
        if not isinstance(self.workers, int) or self.workers < 1:
            raise InvalidInputError(f"Workers must be a positive integer, got {self.workers!r}")

    @classmethod
    def from_request(cls, payload: Mapping[str, Any]) -> 'CrossMatchConfig':
        """Build a configuration from a camelCase request payload."""
        return cls(
            source_column=payload.get('file1Column'),
            target_column=payload.get('file2Column'),
            threshold=_default(payload.get('similarityThreshold'), 0.8),
            algorithm=payload.get('similarityAlgorithm') or SimilarityAlgorithm.DICE,
            source_extra_columns=payload.get('file1AdditionalColumns') or (),
            target_extra_columns=payload.get('file2AdditionalColumns') or (),
        )

def _default(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value

@dataclass(frozen=True)
class DuplicateInfo:
    """A row removed as a duplicate of an earlier accepted row."""
    original: str
    duplicate: str
    original_index: int
    duplicate_index: int
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'original': self.original,
            'duplicate': self.duplicate,
            'originalIndex': self.original_index,
            'duplicateIndex': self.duplicate_index,
        }
        if self.score is not None:
            result['score'] = self.score
        return result

@dataclass(frozen=True)
class ReductionResult:
    """Output of a single reducer pass."""
    unique_rows: List[Record]
    duplicates: List[DuplicateInfo]

@dataclass(frozen=True)
class DedupResult:
    """Deduplication report for one request."""
    unique_rows: List[Record]
    original_count: int
    duplicates: List[DuplicateInfo] = field(default_factory=list)

    @property
    def unique_count(self) -> int:
        return len(self.unique_rows)

    @property
    def removed_count(self) -> int:
        return self.original_count - self.unique_count

    def filter_rows(
        self,
        records: Sequence[Record],
        selected: Optional[Sequence[int]] = None
    ) -> List[Record]:
        """
        Remove selected duplicates from the processed rows.

        Args:
            records: The processed (already sliced) rows
            selected: Positions in ``duplicates`` to remove, all when None

        Returns:
            List[Record]: Rows kept, in original order
        """
        chosen = range(len(self.duplicates)) if selected is None else selected
        to_remove = {self.duplicates[position].duplicate_index for position in chosen}
        return [row for index, row in enumerate(records) if index not in to_remove]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'uniqueRows': [dict(row) for row in self.unique_rows],
            'originalCount': self.original_count,
            'uniqueCount': self.unique_count,
            'removedCount': self.removed_count,
            'duplicatesFound': [dup.to_dict() for dup in self.duplicates],
        }

    def to_frame(self) -> pd.DataFrame:
        """Unique rows as a DataFrame."""
        return pd.DataFrame([dict(row) for row in self.unique_rows])

    def duplicates_frame(self) -> pd.DataFrame:
        """Duplicate report as a DataFrame."""
        return pd.DataFrame(
            [asdict(dup) for dup in self.duplicates],
            columns=['original', 'duplicate', 'original_index', 'duplicate_index', 'score']
        )

@dataclass(frozen=True)
class MatchResult:
    """Best match in the target sequence for one source row."""
    file1_row_index: int
    file2_row_index: Optional[int]
    file1_value: Any
    file2_value: Any
    score: float
    file1_additional_data: Dict[str, Any] = field(default_factory=dict)
    file2_additional_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_matched(self) -> bool:
        return self.file2_row_index is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file1RowIndex': self.file1_row_index,
            'file2RowIndex': self.file2_row_index,
            'file1Value': self.file1_value,
            'file2Value': self.file2_value,
            'score': self.score,
            'file1AdditionalData': dict(self.file1_additional_data),
            'file2AdditionalData': dict(self.file2_additional_data),
        }

@dataclass(frozen=True)
class CrossMatchReport:
    """Cross-file matching report, one entry per source row."""
    matches: List[MatchResult]
    total_file1_rows: int
    total_file2_rows: int

    @property
    def matched_count(self) -> int:
        return sum(1 for match in self.matches if match.is_matched)

    @property
    def unmatched_count(self) -> int:
        return self.total_file1_rows - self.matched_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'matches': [match.to_dict() for match in self.matches],
            'totalFile1Rows': self.total_file1_rows,
            'totalFile2Rows': self.total_file2_rows,
            'matchedCount': self.matched_count,
            'unmatchedCount': self.unmatched_count,
        }

    def to_frame(self) -> pd.DataFrame:
        """Match report as a flat DataFrame."""
        return pd.DataFrame(
            [
                {
                    'file1_row_index': match.file1_row_index,
                    'file2_row_index': match.file2_row_index,
                    'file1_value': match.file1_value,
                    'file2_value': match.file2_value,
                    'score': match.score,
                    'is_matched': match.is_matched,
                }
                for match in self.matches
            ],
            columns=[
                'file1_row_index', 'file2_row_index', 'file1_value',
                'file2_value', 'score', 'is_matched'
            ]
        )

    def to_export_frame(self, source_column: str, target_column: str) -> pd.DataFrame:
        """
        Build the export table for spreadsheet output.

        Row numbers are 1-based spreadsheet rows below a header line.

        Args:
            source_column: Matched column of the first file
            target_column: Matched column of the second file

        Returns:
            pd.DataFrame: One export row per source row
        """
        rows = []
        for match in self.matches:
            row = {
                f'File1_{source_column}': match.file1_value,
                f'File2_{target_column}': '' if match.file2_value is None else match.file2_value,
                'Score': f"{match.score * 100:.1f}%" if match.score else 'Not found',
                'File1_Row': match.file1_row_index + 2,
                'File2_Row': '' if match.file2_row_index is None else match.file2_row_index + 2,
            }
            for key, value in match.file1_additional_data.items():
                row[f'File1_{key}'] = value
            for key, value in match.file2_additional_data.items():
                row[f'File2_{key}'] = value
            rows.append(row)
        return pd.DataFrame(rows)
