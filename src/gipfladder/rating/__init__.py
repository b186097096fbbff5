"""Rating engines."""
