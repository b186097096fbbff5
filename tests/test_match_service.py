# tests/test_match_service.py

"""Tests for the match ledger and outcome resolution."""

import random
from unittest.mock import patch

import pytest
from conftest import USERNAMES
from gipfladder.db.models import DEFAULT_RATING, Match, Player
from gipfladder.exceptions import (
    AlreadyResolvedError,
    InvalidRemainingPiecesError,
    MatchNotFoundError,
    PlayerNotFoundError,
    RatingCalculationError,
    SameOpponentError,
)
from gipfladder.services import match_service, player_service
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# =============================================================================
# Helper Functions
# =============================================================================


async def count_matches(db: AsyncSession) -> int:
    """Count total matches in database."""
    result = await db.execute(select(func.count()).select_from(Match))
    return int(result.scalar_one())


async def rating_of(db: AsyncSession, login: str) -> float:
    player = await player_service.load_player(db, login)
    assert player is not None
    return player.rating


def as_pairs(ranking: dict[Player, int]) -> list[tuple[str, int]]:
    return [(player.login, n) for player, n in ranking.items()]


# =============================================================================
# Match Creation
# =============================================================================


@pytest.mark.asyncio
async def test_create_match(db_session: AsyncSession, players: list[Player]):
    white, black = players[0], players[1]

    match = await match_service.create_match(db_session, white, black)

    assert match.id is not None
    assert match.white_login == white.login
    assert match.black_login == black.login
    assert not match.is_resolved
    assert match.rating_change is None
    assert await count_matches(db_session) == 1


@pytest.mark.asyncio
async def test_create_match_with_tournament(
    db_session: AsyncSession, players: list[Player]
):
    match = await match_service.create_match(
        db_session, players[2], players[3], tournament_id=7
    )

    loaded = await match_service.load_match(db_session, match.id)
    assert loaded is not None
    assert loaded.tournament_id == 7


@pytest.mark.asyncio
async def test_same_opponent_is_rejected(
    db_session: AsyncSession, players: list[Player]
):
    with pytest.raises(SameOpponentError):
        await match_service.create_match(db_session, players[0], players[0])

    assert await count_matches(db_session) == 0


@pytest.mark.asyncio
async def test_unregistered_player_is_rejected(
    db_session: AsyncSession, players: list[Player]
):
    ghost = Player(login="ghost", email="ghost@gipf.example.org", password="boo")

    with pytest.raises(PlayerNotFoundError):
        await match_service.create_match(db_session, players[0], ghost)

    assert await count_matches(db_session) == 0
    # Nothing was written, so the caller's objects are still usable
    assert players[0].login == "baroqueen"
    assert players[0].rating == DEFAULT_RATING


@pytest.mark.asyncio
async def test_load_unknown_match_returns_none(db_session: AsyncSession):
    assert await match_service.load_match(db_session, 12345) is None


# =============================================================================
# Outcome Resolution
# =============================================================================


@pytest.mark.asyncio
async def test_resolve_between_equal_players(
    db_session: AsyncSession, players: list[Player]
):
    """Two fresh players: the winner ends at exactly 1016, the loser at 984."""
    # 1. ARRANGE
    match = await match_service.create_match(db_session, players[0], players[1])

    # 2. ACT
    resolved = await match_service.resolve_outcome(
        db_session, match, white_won=True, remaining_pieces=3
    )

    # 3. ASSERT
    assert resolved.winner_login == "baroqueen"
    assert resolved.loser_login == "cobrag"
    assert resolved.remaining_pieces == 3
    assert resolved.rating_change == 16.0
    assert await rating_of(db_session, "baroqueen") == 1016.0
    assert await rating_of(db_session, "cobrag") == 984.0


@pytest.mark.asyncio
async def test_black_win(db_session: AsyncSession, players: list[Player]):
    match = await match_service.create_match(db_session, players[0], players[1])

    await match_service.resolve_outcome(
        db_session, match, white_won=False, remaining_pieces=0
    )

    loaded = await match_service.load_match(db_session, match.id)
    assert loaded is not None
    assert loaded.winner_login == "cobrag"
    assert loaded.remaining_pieces == 0
    assert await rating_of(db_session, "cobrag") == 1016.0
    assert await rating_of(db_session, "baroqueen") == 984.0


@pytest.mark.asyncio
async def test_loaded_winner_is_one_of_the_two_players(
    db_session: AsyncSession, players: list[Player]
):
    """After a reload the winner is the very object held as white or black."""
    match = await match_service.create_match(db_session, players[4], players[5])
    await match_service.resolve_outcome(
        db_session, match, white_won=True, remaining_pieces=5
    )

    loaded = await match_service.load_match(db_session, match.id)

    assert loaded is not None
    assert loaded.winner is loaded.white
    assert loaded.loser is loaded.black
    assert loaded.white.login == "fickleSkeleton"
    assert loaded.white.rating == 1016.0


@pytest.mark.asyncio
async def test_match_resolves_only_once(
    db_session: AsyncSession, players: list[Player]
):
    """A second resolution is refused and ratings move only once."""
    # 1. ARRANGE
    match = await match_service.create_match(db_session, players[0], players[1])
    match_id = match.id
    await match_service.resolve_outcome(
        db_session, match, white_won=True, remaining_pieces=2
    )

    # 2. ACT
    with pytest.raises(AlreadyResolvedError):
        await match_service.resolve_outcome(
            db_session, match, white_won=False, remaining_pieces=9
        )

    # 3. ASSERT
    loaded = await match_service.load_match(db_session, match_id)
    assert loaded is not None
    assert loaded.winner_login == "baroqueen"
    assert loaded.remaining_pieces == 2
    assert await rating_of(db_session, "baroqueen") == 1016.0
    assert await rating_of(db_session, "cobrag") == 984.0


@pytest.mark.asyncio
async def test_refused_resolution_leaves_objects_readable(
    db_session: AsyncSession, players: list[Player]
):
    """The caller can keep using its match and players after a refusal."""
    # 1. ARRANGE
    white, black = players[0], players[1]
    match = await match_service.create_match(db_session, white, black)
    await match_service.resolve_outcome(
        db_session, match, white_won=True, remaining_pieces=2
    )

    # 2. ACT
    with pytest.raises(AlreadyResolvedError):
        await match_service.resolve_outcome(
            db_session, match, white_won=False, remaining_pieces=9
        )

    # 3. ASSERT: Read straight from the objects, without reloading
    assert white.rating == 1016.0
    assert black.rating == 984.0
    assert match.winner_login == "baroqueen"
    assert match.remaining_pieces == 2
    assert match.winner is white


@pytest.mark.asyncio
async def test_negative_remaining_pieces_is_rejected(
    db_session: AsyncSession, players: list[Player]
):
    match = await match_service.create_match(db_session, players[0], players[1])

    with pytest.raises(InvalidRemainingPiecesError):
        await match_service.resolve_outcome(
            db_session, match, white_won=True, remaining_pieces=-1
        )

    loaded = await match_service.load_match(db_session, match.id)
    assert loaded is not None
    assert not loaded.is_resolved
    assert await rating_of(db_session, "baroqueen") == DEFAULT_RATING


@pytest.mark.asyncio
async def test_resolve_unknown_match(db_session: AsyncSession, players):
    with pytest.raises(MatchNotFoundError):
        await match_service.resolve_outcome(
            db_session, Match(id=999), white_won=True, remaining_pieces=0
        )

    assert players[0].rating == DEFAULT_RATING


@pytest.mark.asyncio
async def test_rating_failure_rolls_back_resolution(
    db_session: AsyncSession, players: list[Player]
):
    """If the rating update fails, the match stays open and nobody moves."""
    # 1. ARRANGE
    match = await match_service.create_match(db_session, players[0], players[1])
    match_id = match.id

    # 2. ACT
    with patch(
        "gipfladder.rating.elo_engine.update_ratings_for_match",
        side_effect=RatingCalculationError("Simulated rating failure"),
    ):
        with pytest.raises(RatingCalculationError):
            await match_service.resolve_outcome(
                db_session, match, white_won=True, remaining_pieces=1
            )

    # 3. ASSERT
    # The caller's objects show the stored, unresolved state
    assert match.winner_login is None
    assert match.remaining_pieces is None
    assert players[0].rating == DEFAULT_RATING
    assert players[1].rating == DEFAULT_RATING

    loaded = await match_service.load_match(db_session, match_id)
    assert loaded is not None
    assert not loaded.is_resolved
    assert loaded.remaining_pieces is None
    assert await rating_of(db_session, "baroqueen") == DEFAULT_RATING
    assert await rating_of(db_session, "cobrag") == DEFAULT_RATING

    # The same match can still be resolved afterwards
    await match_service.resolve_outcome(
        db_session, loaded, white_won=True, remaining_pieces=1
    )
    assert await rating_of(db_session, "baroqueen") == 1016.0


@pytest.mark.asyncio
async def test_ratings_stay_zero_sum(db_session: AsyncSession, players: list[Player]):
    """Over many random matches the total rating in the ladder never changes."""
    rng = random.Random(0)
    logins = list(USERNAMES)

    for _ in range(40):
        white_login, black_login = rng.sample(logins, 2)
        white = await player_service.load_player(db_session, white_login)
        black = await player_service.load_player(db_session, black_login)
        match = await match_service.create_match(db_session, white, black)
        await match_service.resolve_outcome(
            db_session,
            match,
            white_won=rng.random() < 0.5,
            remaining_pieces=rng.randint(0, 18),
        )

    everyone = await player_service.load_players_by_rating(db_session)
    assert sum(p.rating for p in everyone) == pytest.approx(
        DEFAULT_RATING * len(USERNAMES)
    )
    assert await count_matches(db_session) == 40


# =============================================================================
# Match Count Rankings
# =============================================================================


@pytest.mark.asyncio
async def test_rank_by_matches_played_and_won(
    db_session: AsyncSession, players: list[Player]
):
    """Every player appears, zero counts included, most matches first."""
    # 1. ARRANGE
    by_login = {p.login: p for p in players}
    first = await match_service.create_match(
        db_session, by_login["baroqueen"], by_login["cobrag"]
    )
    second = await match_service.create_match(
        db_session, by_login["baroqueen"], by_login["vikingkong"]
    )
    # Left unresolved: counts as played, not as won
    await match_service.create_match(
        db_session, by_login["cobrag"], by_login["preaster"]
    )
    await match_service.resolve_outcome(
        db_session, first, white_won=True, remaining_pieces=4
    )
    await match_service.resolve_outcome(
        db_session, second, white_won=False, remaining_pieces=1
    )

    # 2. ACT
    played = as_pairs(await match_service.rank_by_matches_played(db_session))
    won = as_pairs(await match_service.rank_by_matches_won(db_session))

    # 3. ASSERT
    assert played == [
        ("baroqueen", 2),
        ("cobrag", 2),
        ("preaster", 1),
        ("vikingkong", 1),
        ("AfternoonTerror", 0),
        ("JealousPelican", 0),
        ("JokeCherry", 0),
        ("PositiveLamb", 0),
        ("SnowTea", 0),
        ("fickleSkeleton", 0),
    ]
    assert won == [
        ("baroqueen", 1),
        ("vikingkong", 1),
        ("AfternoonTerror", 0),
        ("JealousPelican", 0),
        ("JokeCherry", 0),
        ("PositiveLamb", 0),
        ("SnowTea", 0),
        ("cobrag", 0),
        ("fickleSkeleton", 0),
        ("preaster", 0),
    ]


@pytest.mark.asyncio
async def test_rankings_with_no_matches(db_session: AsyncSession, players):
    played = await match_service.rank_by_matches_played(db_session)

    assert len(played) == len(USERNAMES)
    assert set(played.values()) == {0}
    assert await match_service.rank_by_matches_won(db_session) == played


@pytest.mark.asyncio
async def test_rankings_of_empty_ladder(db_session: AsyncSession):
    assert await match_service.rank_by_matches_played(db_session) == {}
    assert await match_service.rank_by_matches_won(db_session) == {}
