"""
config.py
---------
Central configuration for tripweave.

Service knobs (logging, API) come from environment variables, optionally
loaded from a `.env` file next to this package.  The optimization core never
reads the environment: its option dataclasses take the tuning defaults
declared below, and callers override them per run.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the package directory (if it exists).  Won't override vars
# already set in the shell.
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("TRIPWEAVE_LOG_LEVEL", "INFO")
# JSONL event logs (PERFORMANCE / PIPELINE_* events), one file per run id
LOGS_DIR: Path = Path(
    os.getenv("TRIPWEAVE_LOGS_DIR", str(Path(__file__).resolve().parent.parent / "logs"))
)
STRUCTURED_LOGS_ENABLED: bool = _env_bool("TRIPWEAVE_STRUCTURED_LOGS", "true")

# ── API ──────────────────────────────────────────────────────────────────────
API_HOST: str = os.getenv("TRIPWEAVE_API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("TRIPWEAVE_API_PORT", "8000"))
CORS_ALLOWED_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("TRIPWEAVE_CORS_ORIGINS", "*").split(",")
    if origin.strip()
] or ["*"]

# ── Geometry ─────────────────────────────────────────────────────────────────
EARTH_RADIUS_KM: float = 6371.0

# ── Clustering ───────────────────────────────────────────────────────────────
MAX_CLUSTER_RADIUS_KM: float = 50.0
DEFAULT_STAY_HOURS: float = 2.0          # cluster stay time when nobody rated a member

# ── Transport (speeds km/h, thresholds km) ───────────────────────────────────
WALKING_SPEED_KMH: float = 5.0
WALKING_MAX_DISTANCE_KM: float = 2.0
WALKING_TIME_BUFFER: float = 1.1
DRIVING_SPEED_KMH: float = 60.0
DRIVING_MAX_DISTANCE_KM: float = 300.0
DRIVING_TIME_BUFFER: float = 1.2          # parking, traffic
FLYING_SPEED_KMH: float = 500.0
AIRPORT_OVERHEAD_HOURS: float = 3.0       # check-in, security, boarding, baggage
DOWNSHIFT_MAX_DRIVE_HOURS: float = 5.0
DOWNSHIFT_MAX_DRIVE_RATIO: float = 1.5

# ── Route optimization ───────────────────────────────────────────────────────
MAX_ITERATIONS: int = 50
FAIRNESS_WEIGHT: float = 0.6
QUANTITY_WEIGHT: float = 0.4
EARLY_TERMINATION_THRESHOLD: float = 0.95
RANDOM_EXPLORATIONS: int = 15
TOP_CANDIDATES_TO_IMPROVE: int = 5
GREEDY_START_CLUSTERS: int = 3

# ── Time constraints ─────────────────────────────────────────────────────────
DAILY_HOURS: float = 9.0
ROUGH_HOP_HOURS: float = 2.0              # inter-cluster travel before legs are known

# ── Destination time allocation (hours) ──────────────────────────────────────
MIN_DESTINATION_HOURS: float = 0.5
MAX_DESTINATION_HOURS: float = 8.0
DEFAULT_DESTINATION_HOURS: float = 2.0

# ── Daily schedule ───────────────────────────────────────────────────────────
DAY_START_HOUR: int = 9
DAY_END_HOUR: int = 18
LUNCH_START_HOUR: int = 12
LUNCH_DURATION_HOURS: float = 1.0
DINNER_DURATION_HOURS: float = 1.5
BUFFER_MINUTES: int = 15
MORNING_ENERGY_HOURS: float = 3.0
AFTERNOON_ENERGY_HOURS: float = 3.0
EVENING_ENERGY_HOURS: float = 2.0
LONG_TRANSPORT_HOURS: float = 4.0         # a longer leg implies an overnight
MERGE_UTILIZATION_PCT: float = 50.0

# ── Accommodation ────────────────────────────────────────────────────────────
ACCOMMODATION_SEARCH_RADIUS_KM: float = 10.0
ACCOMMODATION_BASE_COST_USD: dict[str, float] = {
    "budget": 65.0,
    "standard": 115.0,
    "premium": 200.0,
}
NEXT_DAY_ACCESS_SPEED_KMH: float = 50.0
CHECK_IN_HOUR: int = 15
CHECK_OUT_HOUR: int = 11

# ── Carbon (kg CO2 per passenger-km) ─────────────────────────────────────────
CARBON_KG_PER_KM: dict[str, float] = {
    "walking": 0.0,
    "driving": 0.192,
    "flying": 0.255,
}
