"""Google Calendar collaborator adapter."""

from lifeos.integrations.google_calendar.schemas import GoogleEventRecord
from lifeos.integrations.google_calendar.service import GoogleCalendarService

__all__ = ["GoogleCalendarService", "GoogleEventRecord"]
