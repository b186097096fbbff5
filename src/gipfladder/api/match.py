# src/gipfladder/api/match.py

"""API endpoints for managing matches."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gipfladder.db.models import Match
from gipfladder.db.session import get_db
from gipfladder.exceptions import PlayerNotFoundError
from gipfladder.schemas import match as match_schema
from gipfladder.services import match_service, player_service

# Create an APIRouter instance for matches
router = APIRouter(prefix="/matches", tags=["Matches"])


async def _get_match_or_404(db: AsyncSession, match_id: int) -> Match:
    match = await match_service.load_match(db, match_id)
    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Match with id {match_id} not found",
        )
    return match


@router.post(
    "/", response_model=match_schema.MatchRead, status_code=status.HTTP_201_CREATED
)
async def create_match(
    match_in: match_schema.MatchCreate, db: AsyncSession = Depends(get_db)
) -> Match:
    """
    Record a new, unresolved match between two registered players.

    Raises:
        404: If either login is not registered
        422: If both sides are the same player
    """
    players = []
    for login in (match_in.white_login, match_in.black_login):
        player = await player_service.load_player(db, login)
        if player is None:
            raise PlayerNotFoundError(login)
        players.append(player)

    white, black = players
    return await match_service.create_match(
        db, white, black, tournament_id=match_in.tournament_id
    )


@router.get("/{match_id}", response_model=match_schema.MatchRead)
async def read_match(match_id: int, db: AsyncSession = Depends(get_db)) -> Match:
    """
    Retrieve a single match by its ID.
    """
    return await _get_match_or_404(db, match_id)


@router.post("/{match_id}/outcome", response_model=match_schema.MatchRead)
async def resolve_match(
    match_id: int,
    outcome: match_schema.MatchOutcome,
    db: AsyncSession = Depends(get_db),
) -> Match:
    """
    Set the winner of a match and update both players' ratings.

    Raises:
        404: If the match doesn't exist
        422: If the match is already resolved or remaining_pieces is negative
    """
    match = await _get_match_or_404(db, match_id)
    return await match_service.resolve_outcome(
        db,
        match,
        white_won=outcome.white_won,
        remaining_pieces=outcome.remaining_pieces,
    )
