from .calendar import (
    CalendarCreate,
    CalendarDetail,
    CalendarRead,
    CalendarReadWithRole,
    CalendarUpdate,
    ParticipantRead,
    ParticipantRoleUpdate,
    VisibilityUpdate,
)
from .category import CategoryCreate, CategoryRead, CategoryUpdate
from .common import ApiResponse, PublicUserSummary, UserSummary
from .event import (
    EventCreate,
    EventParticipantRead,
    EventRead,
    EventUpdate,
    ParticipationUpdate,
)
from .invite import (
    CalendarEmailInviteCreate,
    CalendarEmailInviteRead,
    CalendarInviteInfo,
    EventEmailInviteCreate,
    EventEmailInviteRead,
    EventInviteInfo,
    InviteAccept,
    InviteLinkCreate,
    InviteLinkRead,
)
from .user import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    LogoutRequest,
    RefreshTokenRequest,
    ResendVerificationRequest,
    TokenPair,
    UserBase,
    UserCreate,
    UserLogin,
    UserPublicRead,
    UserRead,
    UserUpdate,
)

__all__ = [
    "ApiResponse",
    "CalendarCreate",
    "CalendarDetail",
    "CalendarEmailInviteCreate",
    "CalendarEmailInviteRead",
    "CalendarInviteInfo",
    "CalendarRead",
    "CalendarReadWithRole",
    "CalendarUpdate",
    "CategoryCreate",
    "CategoryRead",
    "CategoryUpdate",
    "ChangeEmailRequest",
    "ChangePasswordRequest",
    "EventCreate",
    "EventEmailInviteCreate",
    "EventEmailInviteRead",
    "EventInviteInfo",
    "EventParticipantRead",
    "EventRead",
    "EventUpdate",
    "InviteAccept",
    "InviteLinkCreate",
    "InviteLinkRead",
    "LogoutRequest",
    "ParticipantRead",
    "ParticipantRoleUpdate",
    "ParticipationUpdate",
    "PublicUserSummary",
    "RefreshTokenRequest",
    "ResendVerificationRequest",
    "TokenPair",
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserPublicRead",
    "UserRead",
    "UserSummary",
    "VisibilityUpdate",
]
