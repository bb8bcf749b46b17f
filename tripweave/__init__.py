"""tripweave — fair group trip route optimization and day-by-day scheduling."""

__version__ = "1.0.0"
