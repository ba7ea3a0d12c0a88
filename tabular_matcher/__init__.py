"""
Tabular Matcher
===============

Deduplication and cross-file matching of tabular records using exact keys
or approximate string similarity, with an auditable report of every row
that was merged or linked.

Key Features:
- Exact deduplication on normalized column signatures
- Fuzzy deduplication with Dice, Jaro-Winkler or normalized Levenshtein
- Best-match resolution of one file's rows against another file's rows
- Passthrough column rules for match results
- Optional parallel cross-file matching
"""

from tabular_matcher.core.deduplicator import RecordDeduplicator, deduplicate
from tabular_matcher.core.matcher import CrossFileMatcher, match_across
from tabular_matcher.core.errors import (
    MatchingError,
    InvalidInputError,
    ProcessingError
)

from tabular_matcher.config.models import (
    ComparisonMode,
    SimilarityAlgorithm,
    DedupConfig,
    CrossMatchConfig,
    DedupResult,
    CrossMatchReport,
    DuplicateInfo,
    MatchResult
)
from tabular_matcher.config.rules import (
    PassthroughRules,
    ListedColumnsRule,
    OtherColumnsRule,
    PatternRule
)

__version__ = "1.0.0"
