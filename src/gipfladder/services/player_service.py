# src/gipfladder/services/player_service.py

"""Business logic for player registration, persistence and credentials."""

from __future__ import annotations

import logging
import math
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from gipfladder.db import models
from gipfladder.exceptions import (
    ConcurrentUpdateError,
    DuplicateEmailError,
    DuplicateLoginError,
    GipfLadderError,
    InvalidEmailError,
    InvalidLoginError,
    InvalidRatingError,
    PlayerNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)

LOGIN_MAX_LENGTH = 64
EMAIL_MAX_LENGTH = 254

# local@domain.tld: anything but whitespace before the last "@", then a
# domain with at least one dot and no empty label around it.
EMAIL_PATTERN = re.compile(r"^\S+@[^\s@.]+(\.[^\s@.]+)+$")


def validate_login(login: str) -> None:
    if not login:
        raise InvalidLoginError(login, "login must not be empty")
    if len(login) > LOGIN_MAX_LENGTH:
        raise InvalidLoginError(
            login, f"login must be at most {LOGIN_MAX_LENGTH} characters"
        )
    if any(not ch.isprintable() for ch in login):
        raise InvalidLoginError(login, "login must not contain control characters")


def validate_email(email: str) -> None:
    if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
        raise InvalidEmailError(email)


async def _login_taken(db: AsyncSession, login: str) -> bool:
    result = await db.execute(
        select(models.Player.login).where(models.Player.login == login)
    )
    return result.scalar_one_or_none() is not None


async def _email_taken(
    db: AsyncSession, email: str, exclude_login: str | None = None
) -> bool:
    query = select(models.Player.login).where(models.Player.email == email)
    if exclude_login is not None:
        query = query.where(models.Player.login != exclude_login)
    result = await db.execute(query)
    return result.first() is not None


async def _duplicate_key_error(
    db: AsyncSession, login: str, email: str, *, registering: bool
) -> GipfLadderError:
    """Name the key behind a unique-constraint failure by querying again."""
    try:
        if registering and await _login_taken(db, login):
            return DuplicateLoginError(login)
        exclude_login = None if registering else login
        if await _email_taken(db, email, exclude_login=exclude_login):
            return DuplicateEmailError(email)
    except SQLAlchemyError as e:
        raise StorageError(
            "Could not check uniqueness after a constraint failure",
            {"login": login},
        ) from e
    return StorageError("Unique constraint failed", {"login": login})


async def register_player(
    db: AsyncSession, login: str, password: str, email: str
) -> models.Player:
    """
    Registers a new player with the default rating.

    The email shape is checked first, then login and email uniqueness
    independently. A registration that races another one past these checks
    is stopped by the unique constraints and reported the same way.

    A rejected registration writes nothing and leaves the session as it was.

    Raises:
        InvalidLoginError: If the login is empty, too long or not printable
        InvalidEmailError: If the email is not shaped like local@domain.tld
        DuplicateLoginError: If the login is already registered
        DuplicateEmailError: If another player already uses the email
        StorageError: If the backing store fails
    """
    validate_login(login)
    validate_email(email)

    try:
        if await _login_taken(db, login):
            raise DuplicateLoginError(login)
        if await _email_taken(db, email):
            raise DuplicateEmailError(email)

        player = models.Player(login=login, email=email, password=password)
        db.add(player)
        await db.commit()

    except (DuplicateLoginError, DuplicateEmailError):
        logger.info("Registration rejected", extra={"login": login})
        raise

    except IntegrityError as e:
        await db.rollback()
        # Lost a race against a concurrent registration: find which key.
        raise await _duplicate_key_error(db, login, email, registering=True) from e

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "Failed to register player", extra={"login": login}, exc_info=True
        )
        raise StorageError("Could not register player", {"login": login}) from e

    logger.info("Registered player", extra={"login": login})
    return player


async def load_player(db: AsyncSession, login: str) -> models.Player | None:
    """Returns the player as currently stored, or None if the login is unknown."""
    query = (
        select(models.Player)
        .where(models.Player.login == login)
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise StorageError("Could not load player", {"login": login}) from e
    return result.scalar_one_or_none()


async def load_players_by_rating(db: AsyncSession) -> list[models.Player]:
    """All players, best rating first; equal ratings ordered by login."""
    query = (
        select(models.Player)
        .order_by(models.Player.rating.desc(), models.Player.login.asc())
        .execution_options(populate_existing=True)
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise StorageError("Could not load players") from e
    return list(result.scalars().all())


async def save_player(db: AsyncSession, player: models.Player) -> models.Player:
    """
    Persists the email, password verifier and rating of an existing player.

    A player may keep its own email; taking another player's email fails.
    A rejected email is refused before anything is written: the session is
    left as it was and ``player`` keeps its in-memory values, so it can be
    corrected and saved again. A failure while writing rolls the
    transaction back.

    Raises:
        InvalidEmailError: If the email is not shaped like local@domain.tld
        DuplicateEmailError: If another player already uses the email
        ConcurrentUpdateError: If the player was modified since it was loaded
        StorageError: If the backing store fails
    """
    login = email = None

    try:
        login, email = player.login, player.email
        validate_email(email)
        if await _email_taken(db, email, exclude_login=login):
            raise DuplicateEmailError(email)

        db.add(player)
        await db.commit()

    except (InvalidEmailError, DuplicateEmailError):
        logger.info("Save rejected", extra={"login": login})
        raise

    except StaleDataError as e:
        await db.rollback()
        raise ConcurrentUpdateError("Player", login) from e

    except IntegrityError as e:
        await db.rollback()
        raise await _duplicate_key_error(db, login, email, registering=False) from e

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to save player", extra={"login": login}, exc_info=True)
        raise StorageError("Could not save player", {"login": login}) from e

    logger.debug("Saved player", extra={"login": login, "rating": player.rating})
    return player


def verify_password(player: models.Player, password: str) -> bool:
    """True if ``password`` matches the player's stored verifier."""
    return player.check_password(password)


async def adjust_rating(db: AsyncSession, login: str, delta: float) -> models.Player:
    """Administrative rating correction, persisted immediately.

    Raises:
        PlayerNotFoundError: If the login is unknown
        InvalidRatingError: If the corrected rating would not be finite
    """
    player = await load_player(db, login)
    if player is None:
        raise PlayerNotFoundError(login)
    rating = player.rating + delta
    if not math.isfinite(rating):
        raise InvalidRatingError(login, rating)
    player.add_rating(delta)
    await save_player(db, player)
    logger.info(
        "Adjusted rating",
        extra={"login": login, "delta": delta, "rating": player.rating},
    )
    return player
