"""Request boundary for JSON-shaped dedup and match requests."""

from typing import Any, Dict, Mapping

from tabular_matcher.config.models import CrossMatchConfig, DedupConfig
from tabular_matcher.core.deduplicator import RecordDeduplicator
from tabular_matcher.core.errors import InvalidInputError
from tabular_matcher.core.matcher import CrossFileMatcher


def _check_payload(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Request body must be an object")
    return payload


def process_dedup_request(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deduplicate the rows of a request.

    Args:
        payload: Object with ``data``, ``columns`` and optional
            ``comparisonMode``, ``similarityThreshold``,
            ``similarityAlgorithm``, ``sliceStart`` and ``sliceEnd``

    Returns:
        Dict[str, Any]: ``uniqueRows``, ``originalCount``, ``uniqueCount``,
        ``removedCount`` and ``duplicatesFound``

    Raises:
        MatchingError: On invalid input or processing failure
    """
    payload = _check_payload(payload)
    config = DedupConfig.from_request(payload)
    return RecordDeduplicator(config).deduplicate(payload.get('data')).to_dict()


def process_match_request(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Match the rows of two files from a request.

    Args:
        payload: Object with ``file1Data``, ``file2Data``, ``file1Column``,
            ``file2Column`` and optional ``file1AdditionalColumns``,
            ``file2AdditionalColumns``, ``similarityThreshold`` and
            ``similarityAlgorithm``

    Returns:
        Dict[str, Any]: ``matches``, ``totalFile1Rows``, ``totalFile2Rows``,
        ``matchedCount`` and ``unmatchedCount``

    Raises:
        MatchingError: On invalid input or processing failure
    """
    payload = _check_payload(payload)
    config = CrossMatchConfig.from_request(payload)
    matcher = CrossFileMatcher(config)
    return matcher.match(payload.get('file1Data'), payload.get('file2Data')).to_dict()
