"""Domain layer - library indexing and playlist export."""
