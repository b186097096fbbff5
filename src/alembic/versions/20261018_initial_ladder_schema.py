"""Create players and matches tables

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration creates:
- players, keyed by login, with a unique email and a default 1000.0 rating
- matches between two distinct players, with nullable outcome columns
- version columns for optimistic locking on both tables
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create players and matches with their indexes and constraints."""
    # === PLAYERS ===
    op.create_table(
        "players",
        sa.Column("login", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("password_hash", sa.String(length=128), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False, server_default="1000.0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.UniqueConstraint("email", name="uq_players_email"),
    )
    op.create_index("ix_players_rating", "players", ["rating"])

    # === MATCHES ===
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "white_login",
            sa.String(length=64),
            sa.ForeignKey("players.login"),
            nullable=False,
        ),
        sa.Column(
            "black_login",
            sa.String(length=64),
            sa.ForeignKey("players.login"),
            nullable=False,
        ),
        sa.Column(
            "winner_login",
            sa.String(length=64),
            sa.ForeignKey("players.login"),
            nullable=True,
        ),
        sa.Column(
            "loser_login",
            sa.String(length=64),
            sa.ForeignKey("players.login"),
            nullable=True,
        ),
        sa.Column("remaining_pieces", sa.Integer(), nullable=True),
        sa.Column("rating_change", sa.Float(), nullable=True),
        sa.Column("tournament_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint(
            "white_login <> black_login", name="ck_matches_distinct_players"
        ),
        sa.CheckConstraint(
            "remaining_pieces IS NULL OR remaining_pieces >= 0",
            name="ck_matches_remaining_pieces",
        ),
    )
    op.create_index("ix_matches_white_login", "matches", ["white_login"])
    op.create_index("ix_matches_black_login", "matches", ["black_login"])
    op.create_index("ix_matches_winner_login", "matches", ["winner_login"])
    op.create_index("ix_matches_tournament_id", "matches", ["tournament_id"])


def downgrade() -> None:
    """Drop matches then players."""
    op.drop_index("ix_matches_tournament_id", "matches")
    op.drop_index("ix_matches_winner_login", "matches")
    op.drop_index("ix_matches_black_login", "matches")
    op.drop_index("ix_matches_white_login", "matches")
    op.drop_table("matches")

    op.drop_index("ix_players_rating", "players")
    op.drop_table("players")
