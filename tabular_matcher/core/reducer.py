"""Exact and fuzzy duplicate reducers."""

from typing import Dict, List, Sequence, Tuple

from tabular_matcher.config.models import (
    DuplicateInfo,
    Record,
    ReductionResult,
    SimilarityAlgorithm
)
from tabular_matcher.core.preprocessor import (
    EXACT_SEPARATOR,
    FUZZY_SEPARATOR,
    SignatureBuilder
)
from tabular_matcher.core.validator import SimilarityScorer


def reduce_exact(records: Sequence[Record], columns: Sequence[str]) -> ReductionResult:
    """
    Remove rows whose signature was already seen, in a single pass.

    Rows are keyed on the tuple of normalized values, so values containing
    the separator never collide.

    Args:
        records: Rows to deduplicate
        columns: Selected columns, in signature order

    Returns:
        ReductionResult: First occurrences in input order, plus one
        DuplicateInfo per later occurrence
    """
    builder = SignatureBuilder(columns, EXACT_SEPARATOR)
    first_seen: Dict[Tuple[str, ...], Tuple[int, str]] = {}
    unique_rows: List[Record] = []
    duplicates: List[DuplicateInfo] = []

    for index, record in enumerate(records):
        tokens = builder.tokens(record)
        signature = EXACT_SEPARATOR.join(tokens)

        if tokens not in first_seen:
            first_seen[tokens] = (index, signature)
            unique_rows.append(record)
        else:
            original_index, original_signature = first_seen[tokens]
            duplicates.append(DuplicateInfo(
                original=original_signature,
                duplicate=signature,
                original_index=original_index,
                duplicate_index=index
            ))

    return ReductionResult(unique_rows=unique_rows, duplicates=duplicates)


def reduce_fuzzy(
    records: Sequence[Record],
    columns: Sequence[str],
    threshold: float,
    algorithm: SimilarityAlgorithm
) -> ReductionResult:
    """
    Remove rows similar enough to an already accepted row.

    Each row is compared against every accepted row only; the best score
    at or above the threshold wins and the first accepted row wins ties.
    This costs O(n * k) comparisons for k accepted rows, O(n^2) when most
    rows are unique.

    Args:
        records: Rows to deduplicate
        columns: Selected columns, in signature order
        threshold: Minimum similarity for a duplicate
        algorithm: Similarity algorithm

    Returns:
        ReductionResult: Accepted rows in input order, plus one
        DuplicateInfo per merged row carrying its score
    """
    builder = SignatureBuilder(columns, FUZZY_SEPARATOR)
    scorer = SimilarityScorer(algorithm)
    accepted: List[Tuple[str, int]] = []
    unique_rows: List[Record] = []
    duplicates: List[DuplicateInfo] = []

    for index, record in enumerate(records):
        signature = builder.build(record)
        best_candidate = None
        best_score = 0.0

        for candidate_signature, candidate_index in accepted:
            similarity = scorer.score(signature, candidate_signature)
            if similarity >= threshold and (best_candidate is None or similarity > best_score):
                best_candidate = (candidate_signature, candidate_index)
                best_score = similarity

        if best_candidate is None:
            accepted.append((signature, index))
            unique_rows.append(record)
        else:
            duplicates.append(DuplicateInfo(
                original=best_candidate[0],
                duplicate=signature,
                original_index=best_candidate[1],
                duplicate_index=index,
                score=best_score
            ))

    return ReductionResult(unique_rows=unique_rows, duplicates=duplicates)
