"""Shared application constants.

Centralizes values used by the tracking session, the store and the API so we
can document and adjust them in one place.
"""

# Mean Earth radius in kilometres (haversine)
EARTH_RADIUS_KM = 6371.0

# SQLite file used when DATABASE_URL is not set
DEFAULT_DB_NAME = "fitness_tracker.db"

ACTIVITIES_TABLE = "activities"

# Position source defaults: updates every ~5 s, or after moving 10 m
DEFAULT_MIN_INTERVAL_MS = 5000
DEFAULT_MIN_DISTANCE_M = 10.0

# Duration display refresh period
DEFAULT_TICK_PERIOD_MS = 1000

# Format of the stored activity date (UTC, second precision)
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S+00:00"
