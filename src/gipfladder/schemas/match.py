# src/gipfladder/schemas/match.py

"""Pydantic schemas for the Match resource."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ===============================================
# == Match Schemas
# ===============================================


class MatchBase(BaseModel):
    """Shared properties for a match."""

    white_login: str = Field(..., description="Player moving first")
    black_login: str = Field(..., description="Player moving second")

    # Opaque reference to a tournament managed outside the ladder
    tournament_id: int | None = None


class MatchCreate(MatchBase):
    """Properties to receive via API on create. The match starts unresolved."""

    pass


class MatchOutcome(BaseModel):
    """Payload resolving a match. Accepted once per match."""

    white_won: bool
    remaining_pieces: int = Field(
        ..., description="Pieces the winner still had at the end of the game"
    )


class MatchRead(MatchBase):
    """Properties to return to the client for a match."""

    id: int
    created_at: datetime

    # Outcome fields stay null until the match is resolved
    winner_login: str | None = None
    loser_login: str | None = None
    remaining_pieces: int | None = None
    # Winner's rating delta; the loser moved by the opposite amount
    rating_change: float | None = None

    model_config = ConfigDict(from_attributes=True)
