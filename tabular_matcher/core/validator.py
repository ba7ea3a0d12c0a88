"""String similarity scoring."""

from collections import Counter
from typing import Callable, Dict, Union
import Levenshtein
from tabular_matcher.config.models import SimilarityAlgorithm


def _bigrams(text: str) -> Counter:
    """Multiset of adjacent-character pairs."""
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def dice_coefficient(s1: str, s2: str) -> float:
    """
    Bigram overlap coefficient.

    Shared bigrams are counted up to their smaller multiplicity.
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    bigrams1 = _bigrams(s1)
    bigrams2 = _bigrams(s2)
    total = sum(bigrams1.values()) + sum(bigrams2.values())
    if total == 0:
        return 0.0

    shared = sum((bigrams1 & bigrams2).values())
    return 2.0 * shared / total


def jaro_winkler_similarity(s1: str, s2: str) -> float:
    """Jaro similarity with the Winkler common-prefix bonus."""
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    return min(1.0, max(0.0, Levenshtein.jaro_winkler(s1, s2)))


def levenshtein_similarity(s1: str, s2: str) -> float:
    """Edit distance normalized by the longer string, subtracted from 1."""
    max_length = max(len(s1), len(s2))
    if max_length == 0:
        return 1.0
    return 1 - (Levenshtein.distance(s1, s2) / max_length)


class SimilarityScorer:
    """Scores string pairs in [0, 1] under a selectable algorithm."""

    _ALGORITHMS: Dict[SimilarityAlgorithm, Callable[[str, str], float]] = {
        SimilarityAlgorithm.DICE: dice_coefficient,
        SimilarityAlgorithm.JARO_WINKLER: jaro_winkler_similarity,
        SimilarityAlgorithm.LEVENSHTEIN: levenshtein_similarity,
    }

    def __init__(self, algorithm: Union[SimilarityAlgorithm, str]):
        self.algorithm = SimilarityAlgorithm(algorithm)
        self._score = self._ALGORITHMS[self.algorithm]

    def score(self, s1: str, s2: str) -> float:
        """
        Calculate similarity between two normalized strings.

        Args:
            s1: First string
            s2: Second string

        Returns:
            float: Similarity score between 0 and 1, 1 meaning identical
        """
        return self._score(s1, s2)


def score(s1: str, s2: str, algorithm: Union[SimilarityAlgorithm, str]) -> float:
    """Similarity of two strings under the given algorithm."""
    return SimilarityScorer(algorithm).score(s1, s2)
