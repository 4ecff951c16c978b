from .calendar import Calendar
from .calendar_email_invite import CalendarEmailInvite
from .calendar_invite_link import CalendarInviteLink
from .calendar_participant import CalendarParticipant, ParticipantRole
from .event import Event
from .event_category import EventCategory
from .event_email_invite import EventEmailInvite
from .event_participant import EventParticipant
from .user import User

__all__ = [
    "Calendar",
    "CalendarEmailInvite",
    "CalendarInviteLink",
    "CalendarParticipant",
    "Event",
    "EventCategory",
    "EventEmailInvite",
    "EventParticipant",
    "ParticipantRole",
    "User",
]
