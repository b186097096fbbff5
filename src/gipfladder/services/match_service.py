# src/gipfladder/services/match_service.py

"""Business logic for match-related operations."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from gipfladder.db import models
from gipfladder.exceptions import (
    AlreadyResolvedError,
    ConcurrentUpdateError,
    GipfLadderError,
    InvalidRemainingPiecesError,
    MatchNotFoundError,
    PlayerNotFoundError,
    SameOpponentError,
    StorageError,
)
from gipfladder.rating import elo_engine

logger = logging.getLogger(__name__)

_PLAYER_RELATIONSHIPS = (
    selectinload(models.Match.white),
    selectinload(models.Match.black),
    selectinload(models.Match.winner),
    selectinload(models.Match.loser),
)


async def create_match(
    db: AsyncSession,
    white: models.Player,
    black: models.Player,
    tournament_id: int | None = None,
) -> models.Match:
    """
    Records a new, unresolved match between two registered players.

    An unknown player is rejected before anything is written, and the
    session is left as it was.

    Raises:
        SameOpponentError: If both sides are the same login
        PlayerNotFoundError: If either player is not registered
        StorageError: If the backing store fails
    """
    white_login = black_login = None
    try:
        white_login, black_login = white.login, black.login
        if white_login == black_login:
            raise SameOpponentError(white_login)

        players = {}
        for login in (white_login, black_login):
            player = await db.get(models.Player, login)
            if player is None:
                raise PlayerNotFoundError(login)
            players[login] = player

        new_match = models.Match(
            white=players[white_login],
            black=players[black_login],
            tournament_id=tournament_id,
        )
        db.add(new_match)
        await db.commit()

    except (SameOpponentError, PlayerNotFoundError) as e:
        logger.info("Match rejected: %s", e.message, extra=e.details)
        raise

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "Failed to create match",
            extra={"white": white_login, "black": black_login},
            exc_info=True,
        )
        raise StorageError("Could not create match") from e

    logger.info(
        "Created match",
        extra={
            "match_id": new_match.id,
            "white": white_login,
            "black": black_login,
            "tournament_id": tournament_id,
        },
    )
    return new_match


async def load_match(db: AsyncSession, match_id: int) -> models.Match | None:
    """
    Loads a match with its players.

    The players come from the session's identity map: a resolved match's
    ``winner`` is the very object held in ``white`` or ``black``.
    """
    query = (
        select(models.Match)
        .where(models.Match.id == match_id)
        .options(*_PLAYER_RELATIONSHIPS)
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise StorageError("Could not load match", {"match_id": match_id}) from e
    return result.scalar_one_or_none()


async def _lock_match(db: AsyncSession, match_id: int) -> models.Match | None:
    result = await db.execute(
        select(models.Match)
        .where(models.Match.id == match_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _lock_players(
    db: AsyncSession, logins: list[str]
) -> dict[str, models.Player]:
    # Lock rows in login order so overlapping resolutions cannot deadlock.
    result = await db.execute(
        select(models.Player)
        .where(models.Player.login.in_(logins))
        .order_by(models.Player.login)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {p.login: p for p in result.scalars().all()}


async def _rollback_and_reload(
    db: AsyncSession,
    match_id: int,
    match: models.Match,
    players: list[models.Player],
) -> None:
    """Undo the transaction and reload what the caller holds.

    A rollback expires every instance in the session; reloading keeps the
    match and its players readable, showing the state as stored.
    """
    await db.rollback()
    try:
        await db.refresh(match)
        await db.refresh(match, ["white", "black", "winner", "loser"])
        for player in players:
            await db.refresh(player)
    except SQLAlchemyError as e:
        raise StorageError(
            "Could not reload match after rollback", {"match_id": match_id}
        ) from e


async def resolve_outcome(
    db: AsyncSession,
    match: models.Match,
    white_won: bool,
    remaining_pieces: int,
) -> models.Match:
    """
    Sets the winner of a match and applies the Elo update, atomically.

    Within one transaction this:
    1. Re-reads and locks the match, refusing it if already resolved
    2. Re-reads and locks both players to get their current ratings
    3. Records winner, loser and remaining pieces on the match
    4. Lets the Elo engine shift both ratings
    5. Commits everything together

    A refused match (unknown or already resolved) is rejected before
    anything is written: the read transaction is ended and every object
    the caller holds stays as it was. If a later step fails, the
    transaction is rolled back: the match stays unresolved, no rating
    moves, and the match and its players are reloaded from the store.

    Raises:
        InvalidRemainingPiecesError: If remaining_pieces is negative
        AlreadyResolvedError: If the match already has an outcome
        MatchNotFoundError: If the match does not exist
        ConcurrentUpdateError: If a row changed under this transaction
        StorageError: If the backing store fails
    """
    if remaining_pieces < 0:
        raise InvalidRemainingPiecesError(remaining_pieces)

    match_id = None
    try:
        match_id = match.id
        logger.info(
            "Resolving match",
            extra={"match_id": match_id, "white_won": white_won},
        )
        current = await _lock_match(db, match_id)
        if current is None or current.is_resolved:
            # Ends the read and releases the row lock; unlike a rollback it
            # leaves loaded instances readable.
            await db.commit()

    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Could not resolve match", {"match_id": match_id}) from e

    if current is None:
        raise MatchNotFoundError(match_id)
    if current.is_resolved:
        logger.info("Resolution refused", extra={"match_id": match_id})
        raise AlreadyResolvedError(match_id)

    locked: list[models.Player] = []
    try:
        players = await _lock_players(db, [current.white_login, current.black_login])
        white = players[current.white_login]
        black = players[current.black_login]
        locked = [white, black]

        current.white, current.black = white, black
        current.winner, current.loser = (white, black) if white_won else (black, white)
        current.remaining_pieces = remaining_pieces

        await elo_engine.update_ratings_for_match(db, current)

        await db.commit()

    except GipfLadderError:
        await _rollback_and_reload(db, match_id, current, locked)
        raise

    except StaleDataError as e:
        await db.rollback()
        raise ConcurrentUpdateError("Match", match_id) from e

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "Failed to resolve match",
            extra={"match_id": match_id},
            exc_info=True,
        )
        raise StorageError("Could not resolve match", {"match_id": match_id}) from e

    logger.info(
        "Match resolved",
        extra={
            "match_id": match_id,
            "winner": current.winner_login,
            "rating_change": current.rating_change,
        },
    )
    return current


async def _rank_by_count(db: AsyncSession, join_on) -> dict[models.Player, int]:
    count = func.count(models.Match.id)
    query = (
        select(models.Player, count.label("count"))
        .outerjoin(models.Match, join_on)
        .group_by(models.Player.login)
        .order_by(count.desc(), models.Player.login.asc())
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise StorageError("Could not compute match ranking") from e
    return {player: n for player, n in result.all()}


async def rank_by_matches_played(db: AsyncSession) -> dict[models.Player, int]:
    """Every player with the number of matches they took part in, most first."""
    return await _rank_by_count(
        db,
        or_(
            models.Match.white_login == models.Player.login,
            models.Match.black_login == models.Player.login,
        ),
    )


async def rank_by_matches_won(db: AsyncSession) -> dict[models.Player, int]:
    """Every player with the number of matches they won, most first."""
    return await _rank_by_count(db, models.Match.winner_login == models.Player.login)
