"""
RiskRank — Custom Exceptions.

Typed error hierarchy. Every failure of the AI collaborator maps to one
of these so the engine can fall back without guessing at raw exceptions.
"""


class RiskRankError(Exception):
    """Base exception for all RiskRank errors."""

    kind = "error"


class CollaboratorUnavailable(RiskRankError):
    """The LLM could not be reached, authenticated, or timed out."""

    kind = "collaborator_unavailable"


class MalformedResponse(RiskRankError):
    """The LLM payload is not a JSON array or violates the ranking schema."""

    kind = "malformed_response"


class InvalidIndexReference(MalformedResponse):
    """A ranking entry points at a finding that was never submitted."""

    kind = "invalid_index_reference"

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(
            f"originalIndex {index} does not resolve against {size} findings"
        )


class InvalidThreshold(RiskRankError, ValueError):
    """Unrecognized severity threshold passed to the gate."""

    kind = "invalid_threshold"


class ScannerError(RiskRankError):
    """The static analysis scanner is missing or produced corrupt output."""

    kind = "scanner_error"
