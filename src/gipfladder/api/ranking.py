# src/gipfladder/api/ranking.py

"""API endpoints for leaderboards."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gipfladder.db.session import get_db
from gipfladder.schemas.leaderboard import LeaderboardEntry, MatchCountEntry
from gipfladder.services import ranking_service

router = APIRouter(prefix="/rankings", tags=["Rankings"])


@router.get("/rating", response_model=list[LeaderboardEntry])
async def read_rating_leaderboard(
    db: AsyncSession = Depends(get_db),
) -> list[LeaderboardEntry]:
    """All players, highest rating first."""
    return await ranking_service.rating_leaderboard(db)


@router.get("/matches-played", response_model=list[MatchCountEntry])
async def read_matches_played_leaderboard(
    db: AsyncSession = Depends(get_db),
) -> list[MatchCountEntry]:
    """All players, most matches played first. Players with none show 0."""
    return await ranking_service.matches_played_leaderboard(db)


@router.get("/matches-won", response_model=list[MatchCountEntry])
async def read_matches_won_leaderboard(
    db: AsyncSession = Depends(get_db),
) -> list[MatchCountEntry]:
    """All players, most matches won first. Players with none show 0."""
    return await ranking_service.matches_won_leaderboard(db)
