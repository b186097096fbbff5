# src/gipfladder/api/player.py

"""API endpoints for managing players."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gipfladder.db.models import Player
from gipfladder.db.session import get_db
from gipfladder.schemas import player as player_schema
from gipfladder.services import player_service

# Create an APIRouter instance for players
# - prefix="/players": All routes here will be prefixed with /players
# - tags=["Players"]: Groups these endpoints under "Players" in the API docs
router = APIRouter(prefix="/players", tags=["Players"])


async def _get_player_or_404(db: AsyncSession, login: str) -> Player:
    player = await player_service.load_player(db, login)
    if player is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Player with login '{login}' not found",
        )
    return player


@router.post(
    "/",
    response_model=player_schema.PlayerRead,
    status_code=status.HTTP_201_CREATED,
)
async def register_player(
    player_in: player_schema.PlayerCreate, db: AsyncSession = Depends(get_db)
) -> Player:
    """
    Register a new player at the default rating.

    - **login**: The unique, case-sensitive login.
    - **email**: A unique address shaped like local@domain.tld.
    - **password**: Stored only as a one-way verifier.

    Raises:
        409 Conflict: If the login or the email is already taken.
        422 Unprocessable Entity: If the login or email is malformed.
    """
    return await player_service.register_player(
        db,
        login=player_in.login,
        password=player_in.password,
        email=player_in.email,
    )


@router.get("/{login}", response_model=player_schema.PlayerRead)
async def read_player(login: str, db: AsyncSession = Depends(get_db)) -> Player:
    """
    Retrieve a single player by login.
    """
    return await _get_player_or_404(db, login)


@router.put("/{login}", response_model=player_schema.PlayerRead)
async def update_player(
    login: str,
    player_in: player_schema.PlayerUpdate,
    db: AsyncSession = Depends(get_db),
) -> Player:
    """
    Change a player's email and/or password.

    Raises:
        404 Not Found: If the player doesn't exist.
        409 Conflict: If the new email belongs to another player.
    """
    player = await _get_player_or_404(db, login)

    update_data = player_in.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in update_data:
        player.email = update_data["email"]
    if "password" in update_data:
        player.set_password(update_data["password"])

    return await player_service.save_player(db, player)


@router.post("/{login}/rating-adjustments", response_model=player_schema.PlayerRead)
async def adjust_rating(
    login: str,
    adjustment: player_schema.RatingAdjustment,
    db: AsyncSession = Depends(get_db),
) -> Player:
    """
    Administrative correction: add ``delta`` to the player's rating.
    """
    return await player_service.adjust_rating(db, login, adjustment.delta)


@router.post(
    "/{login}/password-check", response_model=player_schema.PasswordCheckResult
)
async def check_password(
    login: str,
    check: player_schema.PasswordCheck,
    db: AsyncSession = Depends(get_db),
) -> player_schema.PasswordCheckResult:
    """
    Tell whether a password matches the player's stored verifier.
    """
    player = await _get_player_or_404(db, login)
    return player_schema.PasswordCheckResult(
        valid=player_service.verify_password(player, check.password)
    )
