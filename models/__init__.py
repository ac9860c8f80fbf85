from .user import User, UserRole
from .session import UserSession
from .delivery_platform import DeliveryPlatform
from .platform_link import PlatformLink
from .route import Route, RouteStatus
from .stop import Stop, StopStatus
from .package import Package, PackageStatus
from .earning_record import EarningRecord
from .shift import Shift, ShiftStatus
from .notification import Notification
from .hub import Hub, HubMembership, HubRole

__all__ = [
    "User",
    "UserRole",
    "UserSession",
    "DeliveryPlatform",
    "PlatformLink",
    "Route",
    "RouteStatus",
    "Stop",
    "StopStatus",
    "Package",
    "PackageStatus",
    "EarningRecord",
    "Shift",
    "ShiftStatus",
    "Notification",
    "Hub",
    "HubMembership",
    "HubRole",
]
