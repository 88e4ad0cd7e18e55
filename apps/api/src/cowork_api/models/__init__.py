"""SQLAlchemy models package."""

from .activity import ActivityAction, ActivityLog  # noqa: F401
from .meeting_room import (  # noqa: F401
    BookingPaymentStatus,
    MeetingRoom,
    MeetingRoomBooking,
    MeetingRoomBookingStatus,
)
from .membership import (  # noqa: F401
    Membership,
    MembershipPerkUsage,
    MembershipPlan,
    MembershipPlanPerk,
    MembershipPlanType,
    MembershipStatus,
    PerkType,
)
from .user import User, UserRoleEnum, UserStatusEnum  # noqa: F401
