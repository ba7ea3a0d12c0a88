"""Error types raised by the matching engine."""

from typing import Dict


class MatchingError(Exception):
    """Base class for errors scoped to a single request."""

    kind = 'matching_error'

    def to_dict(self) -> Dict[str, str]:
        return {'error': str(self), 'kind': self.kind}


class InvalidInputError(MatchingError, ValueError):
    """The request was rejected before any processing began."""

    kind = 'invalid_input'


class ProcessingError(MatchingError):
    """An unexpected fault aborted scoring or reduction."""

    kind = 'processing_failure'
