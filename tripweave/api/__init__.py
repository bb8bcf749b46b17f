"""api — FastAPI service surface."""
