from .auth import router as auth_router
from .platforms import router as platforms_router
from .dashboard import router as dashboard_router
from .today import router as today_router
from .delivery_routes import router as routes_router
from .packages import router as packages_router
from .earnings import router as earnings_router
from .shifts import router as shifts_router
from .hubs import router as hubs_router
from .notifications import router as notifications_router

__all__ = [
    "auth_router",
    "platforms_router",
    "dashboard_router",
    "today_router",
    "routes_router",
    "packages_router",
    "earnings_router",
    "shifts_router",
    "hubs_router",
    "notifications_router",
]
