"""Value normalization and record signatures."""

from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple
import pandas as pd

from tabular_matcher.core.errors import InvalidInputError

# Stands in for an absent cell inside a signature
NULL_TOKEN = 'NULL'

EXACT_SEPARATOR = '|'
FUZZY_SEPARATOR = ' '

class Preprocessor(Protocol):
    """Protocol defining the interface for preprocessors."""
    def process(self, value: Any) -> str:
        """Process a value into a standardized string format."""
        ...

def is_null(value: Any) -> bool:
    """Check if value is absent (None, NaN, NaT or pd.NA)."""
    return pd.api.types.is_scalar(value) and pd.isna(value)

def normalize_value(value: Any, null_token: str = '') -> str:
    """
    Canonicalize a cell value into a comparable string.

    Args:
        value: Raw cell value
        null_token: Replacement for absent values

    Returns:
        str: Trimmed, lowercased string form of the value
    """
    if is_null(value):
        return null_token

    # Spreadsheet integers frequently arrive as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)

    return str(value).strip().lower()

class ValueNormalizer:
    """Normalizes values for free-standing comparison; absent values become ''."""

    def __init__(self, null_token: str = ''):
        self.null_token = null_token

    def process(self, value: Any) -> str:
        return normalize_value(value, self.null_token)

class SignatureBuilder:
    """Derives comparison keys for records from an ordered column selection."""

    def __init__(
        self,
        columns: Sequence[str],
        separator: str = EXACT_SEPARATOR,
        normalizer: Optional[Preprocessor] = None
    ):
        """
        Initialize the signature builder.

        Args:
            columns: Selected columns, in signature order
            separator: Joins normalized tokens in the signature string
            normalizer: Value preprocessor, NULL-token normalizer by default
        """
        self.columns = tuple(columns)
        self.separator = separator
        self.normalizer = normalizer or ValueNormalizer(null_token=NULL_TOKEN)

    def tokens(self, record: Mapping[str, Any]) -> Tuple[str, ...]:
        """Normalized values of the selected columns."""
        return tuple(
            self.normalizer.process(record.get(column))
            for column in self.columns
        )

    def build(self, record: Mapping[str, Any]) -> str:
        """Signature string of a record."""
        return self.separator.join(self.tokens(record))

def build_signature(
    record: Mapping[str, Any],
    columns: Sequence[str],
    separator: str = EXACT_SEPARATOR
) -> str:
    """Signature string of a record over the given columns."""
    return SignatureBuilder(columns, separator).build(record)

def to_records(data: Any, label: str = 'data') -> List[Mapping[str, Any]]:
    """
    Validate input rows and return them as a list of mappings.

    Args:
        data: Sequence of mappings or a DataFrame
        label: Name of the input used in error messages

    Returns:
        List[Mapping[str, Any]]: The rows, unchanged

    Raises:
        InvalidInputError: If data is empty, not a sequence, or holds non-mappings
    """
    if isinstance(data, pd.DataFrame):
        data = data.to_dict(orient='records')

    if (
        isinstance(data, (str, bytes, Mapping))
        or not isinstance(data, Sequence)
        or len(data) == 0
    ):
        raise InvalidInputError(f"Invalid or empty {label}")
    if not all(isinstance(row, Mapping) for row in data):
        raise InvalidInputError(f"Every row of {label} must be a mapping of column names to values")

    return list(data)

def absent_columns(records: Sequence[Mapping[str, Any]], columns: Iterable[str]) -> List[str]:
    """Columns that no record contains."""
    return [
        column for column in columns
        if not any(column in record for record in records)
    ]
