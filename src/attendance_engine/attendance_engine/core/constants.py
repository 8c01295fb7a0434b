"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_SCHEDULE_START = "09:00"
DEFAULT_SCHEDULE_END = "18:00"
DEFAULT_GEOFENCE_RADIUS_METERS = 100

DEFAULT_TENANT_ID = "default"
DEFAULT_TENANT_TIMEZONE = "Asia/Bangkok"
DEFAULT_AUTO_APPROVE_THRESHOLD_MINUTES = 0
DEFAULT_MISSED_CLOCK_OUT_HOURS = 12
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_STANDARD_HOURS_PER_DAY = 8

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
