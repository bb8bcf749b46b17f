"""modules/scheduling — day splitting, meals and multi-day assembly."""

from tripweave.modules.scheduling.day_splitter import (
    merge_underutilized_days, split_into_days, validate_day_schedule,
)
from tripweave.modules.scheduling.meal_scheduler import (
    add_dinner_if_needed, insert_lunch_break, validate_meal_schedule,
)
from tripweave.modules.scheduling.multi_day import build_multi_day_itinerary
