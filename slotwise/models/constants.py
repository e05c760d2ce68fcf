"""Constants for slotwise.

This module centralizes all magic numbers and default values used throughout the application.
"""

# Task defaults
MIN_ESTIMATED_HOURS = 0.25  # 15 minutes minimum
MAX_TITLE_LENGTH = 100

# Working-hours window (hour of day, applied every day of the week)
DEFAULT_WORKDAY_START_HOUR = 9
DEFAULT_WORKDAY_END_HOUR = 17

# Scheduling
SCHEDULING_GRANULARITY_MINUTES = 15  # "now" is rounded up to this boundary
MILLISECONDS_PER_HOUR = 3_600_000
DEFAULT_MAX_LOOKAHEAD_DAYS = 365

# List views
DUE_SOON_DAYS = 3
