"""slotwise: places tasks into non-overlapping working-hours slots."""

__version__ = "0.1.0"
