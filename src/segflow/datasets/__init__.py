"""Dataset-specific sources."""
