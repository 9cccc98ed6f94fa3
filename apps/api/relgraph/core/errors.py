from __future__ import annotations


class GraphEngineError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(GraphEngineError):
    """Entity is missing or belongs to another tenant."""

    status_code = 404


class InvalidEdgeError(GraphEngineError):
    """Self-loop or otherwise malformed edge attributes."""

    status_code = 400


class ConflictError(GraphEngineError):
    """An edge already exists for the unordered contact pair."""

    status_code = 409


class AlreadyReviewedError(GraphEngineError):
    """Approve/reject attempted on a candidate that is no longer pending."""

    status_code = 409
