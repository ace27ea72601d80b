"""Exception types raised to callers of the screening core."""

from __future__ import annotations


class CandidateNotFoundError(LookupError):
    def __init__(self, candidate_id: str):
        super().__init__(f"Candidate not found: {candidate_id}")
        self.candidate_id = candidate_id


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Screening session not found: {session_id}")
        self.session_id = session_id


class OverrideError(ValueError):
    """Raised when a manual override is not allowed for the candidate's state."""


__all__ = ["CandidateNotFoundError", "OverrideError", "SessionNotFoundError"]
