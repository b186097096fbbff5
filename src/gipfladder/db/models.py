# src/gipfladder/db/models.py

"""Database models for the GIPF Ladder application."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import (
    Mapped,
    declarative_base,
    mapped_column,
    relationship,
)

from gipfladder import security

Base = declarative_base()

# Every player starts here on registration.
DEFAULT_RATING = 1000.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===============================================
# Mixins for Common Columns
# ===============================================


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        default=None,
        onupdate=_utcnow,
        nullable=True,
    )


# ===============================================
# Core Tables: Player and Match
# ===============================================


class Player(Base, TimestampMixin):
    """A registered player and their current Elo rating.

    Two Player values are equal when their logins are equal, whether or not
    they are the same Python object.
    """

    __tablename__ = "players"
    login: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    rating: Mapped[float] = mapped_column(
        default=DEFAULT_RATING, nullable=False, index=True
    )

    # Optimistic locking: every UPDATE carries "WHERE version = <read value>".
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __init__(self, login: str, email: str, password: str, **kw: Any):
        kw.setdefault("rating", DEFAULT_RATING)
        super().__init__(**kw)
        self.login = login
        self.email = email
        self.set_password(password)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Player):
            return NotImplemented
        return self.login == other.login

    def __hash__(self) -> int:
        return hash(self.login)

    def __repr__(self) -> str:
        return f"Player(login={self.login!r}, rating={self.rating!r})"

    def set_password(self, password: str) -> None:
        """Replace the stored verifier. Persisted by the next save."""
        self.password_hash = security.hash_password(password)

    def check_password(self, password: str) -> bool:
        return security.verify_password(password, self.password_hash)

    def add_rating(self, delta: float) -> None:
        """Shift the rating in memory only; it survives only once saved."""
        self.rating += delta


class Match(Base, TimestampMixin):
    """A game between two players, white moving first.

    The outcome columns (winner, loser, remaining pieces, rating change) are
    all NULL until the match is resolved, then set once and never again.
    """

    __tablename__ = "matches"
    id: Mapped[int] = mapped_column(primary_key=True)
    white_login: Mapped[str] = mapped_column(
        ForeignKey("players.login"), nullable=False, index=True
    )
    black_login: Mapped[str] = mapped_column(
        ForeignKey("players.login"), nullable=False, index=True
    )
    winner_login: Mapped[str | None] = mapped_column(
        ForeignKey("players.login"), nullable=True, index=True
    )
    loser_login: Mapped[str | None] = mapped_column(
        ForeignKey("players.login"), nullable=True
    )
    remaining_pieces: Mapped[int | None] = mapped_column(nullable=True)

    # Winner's rating delta; the loser moved by the exact opposite amount.
    rating_change: Mapped[float | None] = mapped_column(nullable=True)

    # Opaque reference to a tournament managed elsewhere.
    tournament_id: Mapped[int | None] = mapped_column(nullable=True, index=True)

    version: Mapped[int] = mapped_column(nullable=False)

    white: Mapped["Player"] = relationship(foreign_keys=[white_login])
    black: Mapped["Player"] = relationship(foreign_keys=[black_login])
    winner: Mapped[Optional["Player"]] = relationship(foreign_keys=[winner_login])
    loser: Mapped[Optional["Player"]] = relationship(foreign_keys=[loser_login])

    __table_args__ = (
        CheckConstraint(
            "white_login <> black_login", name="ck_matches_distinct_players"
        ),
        CheckConstraint(
            "remaining_pieces IS NULL OR remaining_pieces >= 0",
            name="ck_matches_remaining_pieces",
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def is_resolved(self) -> bool:
        return self.winner_login is not None
