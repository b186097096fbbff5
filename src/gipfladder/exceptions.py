# src/gipfladder/exceptions.py

"""Custom exception hierarchy for GIPF Ladder.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping in API endpoints
2. Detailed error context for logging and debugging
3. Clear distinction between different error categories
"""

from __future__ import annotations


class GipfLadderError(Exception):
    """Base exception for all GIPF Ladder errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# =============================================================================
# Resource Not Found Errors (HTTP 404)
# =============================================================================


class ResourceNotFoundError(GipfLadderError):
    """Base class for resource not found errors."""

    pass


class PlayerNotFoundError(ResourceNotFoundError):
    """Raised when a login does not belong to any registered player."""

    def __init__(self, login: str) -> None:
        super().__init__(
            message=f"Player with login '{login}' not found",
            details={"login": login},
        )


class MatchNotFoundError(ResourceNotFoundError):
    """Raised when a match ID does not exist."""

    def __init__(self, match_id: int) -> None:
        super().__init__(
            message=f"Match with ID {match_id} not found",
            details={"match_id": match_id},
        )


# =============================================================================
# Validation Errors (HTTP 422)
# =============================================================================


class ValidationError(GipfLadderError):
    """Base class for validation errors.

    Validation always happens before anything is written.
    """

    pass


class InvalidLoginError(ValidationError):
    """Raised when a login is empty, too long or contains control characters."""

    def __init__(self, login: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid login: {reason}",
            details={"login": login, "reason": reason},
        )


class InvalidEmailError(ValidationError):
    """Raised when an email does not look like local@domain.tld."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message=f"Invalid email address '{email}'",
            details={"email": email},
        )


class SameOpponentError(ValidationError):
    """Raised when a match would oppose a player to themselves."""

    def __init__(self, login: str) -> None:
        super().__init__(
            message=f"A match requires two distinct players, got '{login}' twice",
            details={"login": login},
        )


class AlreadyResolvedError(ValidationError):
    """Raised when an outcome is set on a match that already has one."""

    def __init__(self, match_id: int) -> None:
        super().__init__(
            message=f"Match {match_id} already has an outcome",
            details={"match_id": match_id},
        )


class InvalidRemainingPiecesError(ValidationError):
    """Raised when the winner's remaining pieces count is negative."""

    def __init__(self, remaining_pieces: int) -> None:
        super().__init__(
            message=f"Remaining pieces must be non-negative, got {remaining_pieces}",
            details={"remaining_pieces": remaining_pieces},
        )


class InvalidRatingError(ValidationError):
    """Raised when a rating correction would leave a non-finite rating."""

    def __init__(self, login: str, rating: float) -> None:
        super().__init__(
            message=f"Rating of '{login}' must stay finite, got {rating}",
            details={"login": login, "rating": str(rating)},
        )


# =============================================================================
# Uniqueness Conflicts (HTTP 409)
# =============================================================================


class ConflictError(GipfLadderError):
    """Base class for uniqueness violations."""

    pass


class DuplicateLoginError(ConflictError):
    """Raised when registering a login that is already taken."""

    def __init__(self, login: str) -> None:
        super().__init__(
            message=f"Login '{login}' is already registered",
            details={"login": login},
        )


class DuplicateEmailError(ConflictError):
    """Raised when an email is already used by another player."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message=f"Email '{email}' is already used by another player",
            details={"email": email},
        )


# =============================================================================
# Storage Errors (HTTP 503)
# =============================================================================


class StorageError(GipfLadderError):
    """Wraps any failure of the backing store.

    The original SQLAlchemy exception is always chained as ``__cause__``.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message=message, details=details)


class ConcurrentUpdateError(StorageError):
    """Raised when a row changed between the moment it was read and written."""

    def __init__(self, entity: str, key: object) -> None:
        super().__init__(
            message=f"{entity} {key!r} was modified concurrently",
            details={"entity": entity, "key": key},
        )


# =============================================================================
# Rating Engine Errors (HTTP 500)
# =============================================================================


class RatingEngineError(GipfLadderError):
    """Base class for rating calculation errors."""

    pass


class RatingCalculationError(RatingEngineError):
    """Raised when rating calculation fails due to invalid data."""

    def __init__(self, message: str, login: str | None = None) -> None:
        details = {"login": login} if login else {}
        super().__init__(message=message, details=details)
