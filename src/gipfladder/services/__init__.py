"""Service layer: the player store, the match ledger and rankings."""
