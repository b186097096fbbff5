# src/gipfladder/rating/elo_engine.py

"""
Two-player zero-sum Elo rating update.

Every resolved match has exactly one winner and one loser; there are no
draws. The winner gains ``K * (1 - E_w)`` where ``E_w`` is their expected
score, and the loser loses exactly that amount.
"""

from __future__ import annotations

import logging
import math

from sqlalchemy.ext.asyncio import AsyncSession

from gipfladder.db import models
from gipfladder.exceptions import RatingCalculationError

logger = logging.getLogger(__name__)

K_FACTOR = 32

# Rating gap that maps to a 10:1 expected-score ratio.
ELO_SCALE = 400.0


# ===============================================
# == Elo Core Implementation
# ===============================================


def expected_score(rating: float, opponent_rating: float) -> float:
    """Probability that a player rated ``rating`` beats ``opponent_rating``."""
    try:
        odds = 10 ** ((opponent_rating - rating) / ELO_SCALE)
    except OverflowError:
        # 1 / (1 + inf) rounds to 0.0 in floating point anyway.
        return 0.0
    return 1 / (1 + odds)


def compute_deltas(winner_rating: float, loser_rating: float) -> tuple[float, float]:
    """Return ``(winner_delta, loser_delta)`` for a single decided game.

    Pure function: the result depends only on the two pre-match ratings.
    ``loser_delta`` is always exactly ``-winner_delta``.
    """
    if not (math.isfinite(winner_rating) and math.isfinite(loser_rating)):
        raise RatingCalculationError(
            f"Ratings must be finite, got {winner_rating!r} and {loser_rating!r}"
        )
    winner_delta = K_FACTOR * (1 - expected_score(winner_rating, loser_rating))
    return winner_delta, -winner_delta


# ===============================================
# == GIPF Ladder Integration
# ===============================================


async def update_ratings_for_match(db: AsyncSession, match: models.Match) -> None:
    """
    Apply the Elo update for a match whose winner and loser are already set.

    Reads the ratings currently held by the two Player instances, shifts
    both, records the winner's delta on the match and flushes. The caller
    owns the transaction and commits (or rolls back) everything together.
    """
    winner, loser = match.winner, match.loser
    if winner is None or loser is None:
        raise RatingCalculationError(f"Match {match.id} has no outcome to rate")

    winner_delta, loser_delta = compute_deltas(winner.rating, loser.rating)

    logger.debug(
        "Elo update computed",
        extra={
            "match_id": match.id,
            "winner": winner.login,
            "loser": loser.login,
            "winner_rating_before": winner.rating,
            "loser_rating_before": loser.rating,
            "delta": winner_delta,
        },
    )

    winner.add_rating(winner_delta)
    loser.add_rating(loser_delta)
    match.rating_change = winner_delta
    db.add_all([winner, loser, match])

    # Flush changes but don't commit - let the caller handle transaction boundaries
    await db.flush()
