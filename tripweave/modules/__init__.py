"""modules — planning pipeline stages."""
