# src/gipfladder/schemas/leaderboard.py

"""Leaderboard schemas for player rankings."""

from pydantic import BaseModel, ConfigDict, Field

from .player import PlayerRead


class LeaderboardEntry(BaseModel):
    """Single entry in a leaderboard.

    Attributes:
        rank: Position in leaderboard (1-indexed). Ties keep distinct
            positions, ordered by login.
        player: The player information, including the current rating
    """

    rank: int = Field(..., ge=1, description="Position in leaderboard (1-indexed)")
    player: PlayerRead

    model_config = ConfigDict(from_attributes=True)


class MatchCountEntry(LeaderboardEntry):
    """Leaderboard entry ranked by a number of matches (played or won)."""

    count: int = Field(..., ge=0, description="Number of matches counted")
