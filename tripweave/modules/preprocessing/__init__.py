"""modules/preprocessing — preference normalization and geographic clustering."""
