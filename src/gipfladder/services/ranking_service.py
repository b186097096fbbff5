# src/gipfladder/services/ranking_service.py

"""Read-only leaderboards built from the player store and the match ledger.

Nothing here is cached: every call reads the store as it is at call time,
so a resolution is visible to the very next leaderboard read.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from gipfladder.db import models
from gipfladder.schemas.leaderboard import LeaderboardEntry, MatchCountEntry
from gipfladder.schemas.player import PlayerRead
from gipfladder.services import match_service, player_service


def _count_entries(counts: dict[models.Player, int]) -> list[MatchCountEntry]:
    return [
        MatchCountEntry(
            rank=position,
            player=PlayerRead.model_validate(player),
            count=count,
        )
        for position, (player, count) in enumerate(counts.items(), start=1)
    ]


async def rating_leaderboard(db: AsyncSession) -> list[LeaderboardEntry]:
    players = await player_service.load_players_by_rating(db)
    return [
        LeaderboardEntry(rank=position, player=PlayerRead.model_validate(player))
        for position, player in enumerate(players, start=1)
    ]


async def matches_played_leaderboard(db: AsyncSession) -> list[MatchCountEntry]:
    return _count_entries(await match_service.rank_by_matches_played(db))


async def matches_won_leaderboard(db: AsyncSession) -> list[MatchCountEntry]:
    return _count_entries(await match_service.rank_by_matches_won(db))
