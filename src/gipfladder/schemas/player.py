# src/gipfladder/schemas/player.py

"""Pydantic schemas for the Player resource."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ===============================================
# Base Schema: Defines shared attributes for creation
# ===============================================
class PlayerBase(BaseModel):
    """Shared properties for a player."""

    login: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., max_length=254)


# ===============================================
# Create Schema: Adds the plaintext password
# ===============================================
class PlayerCreate(PlayerBase):
    """Properties to receive via API on registration."""

    password: str = Field(..., min_length=1)


# ===============================================
# Update Schema: Defines all fields as optional
# ===============================================
class PlayerUpdate(BaseModel):
    """Properties to receive via API on update, all optional."""

    email: str | None = Field(default=None, max_length=254)
    password: str | None = Field(default=None, min_length=1)


class RatingAdjustment(BaseModel):
    """Administrative correction added to a player's rating."""

    delta: float = Field(..., allow_inf_nan=False)


class PasswordCheck(BaseModel):
    password: str


class PasswordCheckResult(BaseModel):
    valid: bool


# ===============================================
# Read Schema: Defines attributes for returning data
# ===============================================
class PlayerRead(PlayerBase):
    """Properties to return to the client. The verifier is never exposed."""

    rating: float
    created_at: datetime

    # Enable ORM mode for this schema
    model_config = ConfigDict(from_attributes=True)
