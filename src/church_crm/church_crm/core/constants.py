"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

STORAGE_PREFIX = "church-crm:"

DEFAULT_EXPECTED_ATTENDANCE = 50
DEFAULT_TALLY_PREFIX = "T"
DEFAULT_TALLY_PADDING = 3

FOLLOW_UP_TYPE_NEW_GUEST = "new-guest"
FOLLOW_UP_TYPE_RETURNING_GUEST = "returning-guest"
FOLLOW_UP_TYPE_REGULAR_GUEST = "regular-guest"

# Follow-ups in these states block a new follow-up of the same type.
OPEN_FOLLOW_UP_STATUSES = ("open", "in-progress")

# Birthdays older than this (after the lead-adjusted target) are skipped.
BIRTHDAY_MAX_LAG_DAYS = 2

ARRIVAL_BUCKET_LABELS = ("On Time", "0-10 min late", "11-20 min late", ">20 min late")
