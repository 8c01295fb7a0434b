"""Settings shared by every environment.

Environment modules import from here and override what differs.
"""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_engine"),
}

# Engine settings
TENANT_ID = os.getenv("TENANT_ID", "default")
TENANT_TIMEZONE = os.getenv("TENANT_TIMEZONE", "Asia/Bangkok")
DEFAULT_SCHEDULE_START = os.getenv("DEFAULT_SCHEDULE_START", "09:00")
DEFAULT_SCHEDULE_END = os.getenv("DEFAULT_SCHEDULE_END", "18:00")
AUTO_APPROVE_THRESHOLD_MINUTES = int(os.getenv("AUTO_APPROVE_THRESHOLD_MINUTES", "0"))
MISSED_CLOCK_OUT_HOURS = float(os.getenv("MISSED_CLOCK_OUT_HOURS", "12"))
EXCUSE_MANUAL_ENTRIES = env_flag("EXCUSE_MANUAL_ENTRIES", "1")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
