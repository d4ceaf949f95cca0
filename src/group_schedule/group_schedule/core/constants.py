"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import datetime

# Completion buckets; fixed, not configurable.
GOOD_RATE_THRESHOLD = 80
AVERAGE_RATE_THRESHOLD = 50

DEFAULT_REPORT_DAYS = 7
ALL_TIME_START = datetime(1970, 1, 1)
DEFAULT_LOG_LEVEL = "INFO"

# Joins template id and ISO start in the wire form of an occurrence key.
OCCURRENCE_KEY_SEPARATOR = "@"
