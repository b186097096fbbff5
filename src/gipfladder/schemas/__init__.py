# src/gipfladder/schemas/__init__.py

"""Pydantic schemas for API validation and serialization."""

from .leaderboard import LeaderboardEntry, MatchCountEntry
from .match import MatchBase, MatchCreate, MatchOutcome, MatchRead
from .player import (
    PasswordCheck,
    PasswordCheckResult,
    PlayerBase,
    PlayerCreate,
    PlayerRead,
    PlayerUpdate,
    RatingAdjustment,
)

__all__ = [
    # Leaderboard
    "LeaderboardEntry",
    "MatchCountEntry",
    # Match
    "MatchBase",
    "MatchCreate",
    "MatchOutcome",
    "MatchRead",
    # Player
    "PasswordCheck",
    "PasswordCheckResult",
    "PlayerBase",
    "PlayerCreate",
    "PlayerRead",
    "PlayerUpdate",
    "RatingAdjustment",
]
