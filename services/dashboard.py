from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from models.earning_record import EarningRecord
from models.notification import Notification
from models.package import Package
from models.platform_link import PlatformLink
from models.route import Route, RouteStatus
from models.shift import Shift
from services.route_tracker import day_bounds
from utils.time_utils import utcnow


def _earnings_totals(db: Session, user_id: int, since: Optional[datetime] = None) -> dict:
    """SUM/COUNT of a user's earning records, optionally from `since` on"""
    query = db.query(
        func.coalesce(func.sum(EarningRecord.amount), 0),
        func.coalesce(func.sum(EarningRecord.tips), 0),
        func.count(EarningRecord.earning_id),
    ).filter(EarningRecord.user_id == user_id)
    if since is not None:
        query = query.filter(EarningRecord.date >= since)

    amount, tips, count = query.one()
    return {
        "earnings": float(amount or 0),
        "tips": float(tips or 0),
        "deliveries": int(count or 0),
    }


def earnings_summary(db: Session, user_id: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    start_of_day = datetime(now.year, now.month, now.day)
    return {
        "today": _earnings_totals(db, user_id, start_of_day),
        "thisWeek": _earnings_totals(db, user_id, now - timedelta(days=7)),
        "thisMonth": _earnings_totals(db, user_id, datetime(now.year, now.month, 1)),
        "allTime": _earnings_totals(db, user_id),
    }


def build_dashboard(db: Session, user_id: int) -> dict:
    """Worker home screen: links, today's shifts, 7-day earnings, unread count"""
    start, end = day_bounds()

    platform_links = db.query(PlatformLink) \
        .options(joinedload(PlatformLink.platform)) \
        .filter(PlatformLink.user_id == user_id, PlatformLink.is_active == True) \
        .order_by(PlatformLink.sort_order.asc(), PlatformLink.link_id.asc()) \
        .all()

    today_shifts = db.query(Shift) \
        .filter(Shift.user_id == user_id, Shift.start_time >= start, Shift.start_time < end) \
        .order_by(Shift.start_time.asc()) \
        .all()

    week = _earnings_totals(db, user_id, utcnow() - timedelta(days=7))

    unread = db.query(func.count(Notification.notification_id)) \
        .filter(Notification.user_id == user_id, Notification.is_read == False) \
        .scalar()

    return {
        "platformLinks": [link.to_dict() for link in platform_links],
        "todayShifts": [shift.to_dict() for shift in today_shifts],
        "earningsSummary": {
            "last7Days": week["earnings"],
            "tips7Days": week["tips"],
            "recordCount": week["deliveries"],
        },
        "unreadNotifications": int(unread or 0),
    }


def today_overview(db: Session, user_id: int, activity_limit: int = 5) -> dict:
    """Today's routes, summed progress counters and latest package activity"""
    start, end = day_bounds()

    routes = db.query(Route) \
        .options(joinedload(Route.platform_link).joinedload(PlatformLink.platform)) \
        .filter(Route.user_id == user_id, Route.date >= start, Route.date < end) \
        .order_by(Route.date.asc()) \
        .all()

    stats = {
        "totalStops": sum(r.total_stops for r in routes),
        "completedStops": sum(r.completed_stops for r in routes),
        "totalPackages": sum(r.total_packages for r in routes),
        "deliveredPackages": sum(r.delivered_packages for r in routes),
        "activeRoutes": sum(1 for r in routes if r.status == RouteStatus.IN_PROGRESS),
    }

    recent = []
    route_ids = [r.route_id for r in routes]
    if route_ids:
        packages = db.query(Package) \
            .options(joinedload(Package.stop), joinedload(Package.route)) \
            .filter(
                Package.route_id.in_(route_ids),
                or_(Package.scanned_at.isnot(None), Package.delivered_at.isnot(None))
            ) \
            .order_by(
                func.coalesce(Package.delivered_at, Package.scanned_at).desc(),
                Package.package_id.desc()
            ) \
            .limit(activity_limit) \
            .all()
        for pkg in packages:
            item = pkg.to_dict(include_stop=True)
            item["route"] = {"id": pkg.route.route_id, "name": pkg.route.name}
            recent.append(item)

    return {
        "todayRoutes": [r.to_dict() for r in routes],
        "stats": stats,
        "recentActivity": recent,
    }
