"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "UTC"
DEFAULT_ACTIVITY_LIMIT = 50
MAX_ACTIVITY_LIMIT = 200
MAX_STATS_RANGE_DAYS = 366

# Scale of the persisted total_hours column (DECIMAL(4,2)).
TOTAL_HOURS_SCALE = "0.01"

ATTENDANCE_ENTITY = "attendance"
ACTION_PUNCHED_IN = "punched_in"
ACTION_PUNCHED_OUT = "punched_out"
