"""GIPF Ladder: players, matches and Elo ratings for GIPF."""

__version__ = "0.1.0"
