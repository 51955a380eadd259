"""Calendar export package."""

from household.calendar.ics import calendar_filename, event_filename, generate_ics_file

__all__ = ["calendar_filename", "event_filename", "generate_ics_file"]
