"""Passthrough column rules for cross-file matching results."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Sequence
from dataclasses import dataclass
import regex as re

class ColumnRule(ABC):
    """Base class for passthrough column selection rules."""

    @abstractmethod
    def should_add_column(self, column_name: str, key_column: str) -> bool:
        """
        Determine if a column should be copied into a match result.

        Args:
            column_name: Name of a column present in the record
            key_column: Column the record is being matched on

        Returns:
            bool: Whether the column should be copied
        """
        pass

class ListedColumnsRule(ColumnRule):
    """Select an explicit list of columns."""

    def __init__(self, columns: Iterable[str]):
        self.columns = frozenset(columns)

    def should_add_column(self, column_name: str, key_column: str) -> bool:
        return column_name in self.columns

class OtherColumnsRule(ColumnRule):
    """Select every column except the one being matched on."""

    def should_add_column(self, column_name: str, key_column: str) -> bool:
        return column_name != key_column

class PatternRule(ColumnRule):
    """Select columns matching a regex pattern."""

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern)

    def should_add_column(self, column_name: str, key_column: str) -> bool:
        return bool(self.pattern.match(column_name))

@dataclass(frozen=True)
class PassthroughRules:
    """Configuration for which columns to copy from matched records."""

    include_rules: Sequence[ColumnRule]
    exclude_columns: Optional[Sequence[str]] = None

    def should_add_column(self, column_name: str, key_column: str) -> bool:
        """
        Determine if a column should be copied based on all rules.

        Args:
            column_name: Name of a column present in the record
            key_column: Column the record is being matched on

        Returns:
            bool: Whether the column should be copied
        """
        if self.exclude_columns and column_name in self.exclude_columns:
            return False

        return any(
            rule.should_add_column(column_name, key_column)
            for rule in self.include_rules
        )

    def select(self, columns: Iterable[Any], key_column: str) -> List[str]:
        """Columns to copy, in the order they appear in the record."""
        return [
            column for column in columns
            if isinstance(column, str) and self.should_add_column(column, key_column)
        ]
