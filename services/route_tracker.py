"""
Route / stop / package progress tracking.

A Route carries four denormalized counters (total_stops, completed_stops,
total_packages, delivered_packages). Every write that touches a Stop or a
Package bumps the matching counter with a SQL-side increment inside the
same session transaction, so a committed child row is never visible without
its counter change. Nothing is recomputed from the child rows.

completed_stops / delivered_packages move on status transitions only: +1
when a row enters COMPLETED / DELIVERED from any other status. Whether they
come back down when a row leaves that status is governed by
``settings.COUNTERS_DECREMENT_ON_REVERT`` (off by default: once counted,
always counted).
"""

from contextlib import contextmanager
from datetime import date as date_type, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload
import logging

from config import settings
from models.platform_link import PlatformLink
from models.route import Route, RouteStatus
from models.stop import Stop, StopStatus
from models.package import Package, PackageStatus
from utils.errors import AppError
from utils.time_utils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

# One scan moves a package one step; anything not listed stays put
SCAN_PROGRESSION = {
    PackageStatus.SCANNED_IN: PackageStatus.OUT_FOR_DELIVERY,
    PackageStatus.OUT_FOR_DELIVERY: PackageStatus.DELIVERED,
}

STOP_FIELDS = (
    "address", "city", "state", "zip_code", "latitude", "longitude",
    "facility_name", "facility_type", "contact_name", "contact_phone",
    "delivery_window",
)

PACKAGE_FIELDS = (
    "recipient_name", "priority", "recipient_type", "requires_signature",
    "temperature_sensitive", "temperature_range", "delivery_instructions",
)


def counter_delta(previous, new, terminal, decrement_on_revert: bool = False) -> int:
    """Change to apply to a progress counter for one status transition."""
    if new == terminal and previous != terminal:
        return 1
    if decrement_on_revert and previous == terminal and new != terminal:
        return -1
    return 0


def day_bounds(day: Optional[date_type] = None):
    """[start, end) of a calendar day, today when not given."""
    day = day or utcnow().date()
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


class RouteTracker:
    def __init__(self, db: Session, decrement_on_revert: Optional[bool] = None):
        self.db = db
        if decrement_on_revert is None:
            decrement_on_revert = settings.COUNTERS_DECREMENT_ON_REVERT
        self.decrement_on_revert = decrement_on_revert

    # ── plumbing ───────────────────────────────────────────────

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _bump(self, route_id: int, column, amount: int) -> None:
        if amount == 0:
            return
        self.db.query(Route).filter(Route.route_id == route_id).update(
            {column: column + amount},
            synchronize_session=False,
        )

    def get_owned_route(self, user_id: int, route_id: int) -> Route:
        route = self.db.query(Route).filter(
            Route.route_id == route_id,
            Route.user_id == user_id
        ).first()
        if not route:
            raise AppError.not_found("Route not found")
        return route

    def _get_stop(self, route_id: int, stop_id: int, message: str = "Stop not found") -> Stop:
        stop = self.db.query(Stop).filter(
            Stop.stop_id == stop_id,
            Stop.route_id == route_id
        ).first()
        if not stop:
            raise AppError.not_found(message)
        return stop

    def _next_sequence(self, route_id: int) -> int:
        current = self.db.query(func.max(Stop.sequence)).filter(Stop.route_id == route_id).scalar()
        return (current or 0) + 1

    # ── routes ─────────────────────────────────────────────────

    def create_route(
        self,
        user_id: int,
        name: str,
        date: Optional[datetime] = None,
        platform_link_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Route:
        if platform_link_id is not None:
            link = self.db.query(PlatformLink).filter(
                PlatformLink.link_id == platform_link_id,
                PlatformLink.user_id == user_id
            ).first()
            if not link:
                raise AppError.not_found("Platform link not found")

        route = Route(
            user_id=user_id,
            platform_link_id=platform_link_id,
            name=name,
            date=to_naive_utc(date) or utcnow(),
            notes=notes,
            status=RouteStatus.ASSIGNED,
            total_stops=0,
            completed_stops=0,
            total_packages=0,
            delivered_packages=0,
        )
        with self._transaction():
            self.db.add(route)
        self.db.refresh(route)

        logger.info(f"Route {route.route_id} created for user {user_id}")
        return route

    def list_routes(
        self,
        user_id: int,
        day: Optional[date_type] = None,
        status: Optional[RouteStatus] = None,
    ) -> List[Route]:
        start, end = day_bounds(day)
        query = self.db.query(Route).options(
            joinedload(Route.platform_link).joinedload(PlatformLink.platform)
        ).filter(
            Route.user_id == user_id,
            Route.date >= start,
            Route.date < end
        )
        if status is not None:
            query = query.filter(Route.status == status)
        return query.order_by(Route.date.desc()).all()

    def get_route(self, user_id: int, route_id: int) -> Route:
        route = self.db.query(Route).options(
            joinedload(Route.platform_link).joinedload(PlatformLink.platform),
            selectinload(Route.stops).selectinload(Stop.packages),
        ).filter(
            Route.route_id == route_id,
            Route.user_id == user_id
        ).first()
        if not route:
            raise AppError.not_found("Route not found")
        return route

    def update_route_status(self, user_id: int, route_id: int, status: RouteStatus) -> Route:
        route = self.get_owned_route(user_id, route_id)
        now = utcnow()

        with self._transaction():
            route.status = status
            if status == RouteStatus.IN_PROGRESS and not route.started_at:
                route.started_at = now
            if status == RouteStatus.COMPLETED and not route.completed_at:
                route.completed_at = now

        self.db.refresh(route)
        return route

    # ── stops ──────────────────────────────────────────────────

    def add_stop(self, user_id: int, route_id: int, sequence: Optional[int] = None, **fields) -> Stop:
        self.get_owned_route(user_id, route_id)

        if sequence is None:
            sequence = self._next_sequence(route_id)

        stop = Stop(
            route_id=route_id,
            sequence=sequence,
            status=StopStatus.PENDING,
            **{k: v for k, v in fields.items() if k in STOP_FIELDS},
        )
        with self._transaction():
            self.db.add(stop)
            self._bump(route_id, Route.total_stops, 1)

        self.db.refresh(stop)
        return stop

    def bulk_add_stops(self, user_id: int, route_id: int, stops: Iterable[dict]) -> List[Stop]:
        self.get_owned_route(user_id, route_id)
        stops = list(stops)
        if not stops:
            raise AppError.bad_request("At least one stop is required")

        base_sequence = self._next_sequence(route_id)
        created = [
            Stop(
                route_id=route_id,
                sequence=base_sequence + i,
                status=StopStatus.PENDING,
                **{k: v for k, v in data.items() if k in STOP_FIELDS},
            )
            for i, data in enumerate(stops)
        ]
        with self._transaction():
            self.db.add_all(created)
            self._bump(route_id, Route.total_stops, len(created))

        for stop in created:
            self.db.refresh(stop)
        logger.info(f"Added {len(created)} stops to route {route_id}")
        return created

    def update_stop_status(
        self,
        user_id: int,
        route_id: int,
        stop_id: int,
        status: StopStatus,
        notes: Optional[str] = None,
        proof_photo_url: Optional[str] = None,
    ) -> Stop:
        self.get_owned_route(user_id, route_id)
        stop = self._get_stop(route_id, stop_id)

        previous = stop.status
        now = utcnow()

        with self._transaction():
            stop.status = status
            if notes is not None:
                stop.notes = notes
            if proof_photo_url is not None:
                stop.proof_photo_url = proof_photo_url
            if status == StopStatus.ARRIVED and not stop.arrived_at:
                stop.arrived_at = now
            if status == StopStatus.COMPLETED and not stop.completed_at:
                stop.completed_at = now
            self._bump(
                route_id,
                Route.completed_stops,
                counter_delta(previous, status, StopStatus.COMPLETED, self.decrement_on_revert),
            )

        self.db.refresh(stop)
        return stop

    # ── packages ───────────────────────────────────────────────

    def add_package(
        self,
        user_id: int,
        route_id: int,
        tracking_number: str,
        barcode: Optional[str] = None,
        stop_id: Optional[int] = None,
        **fields,
    ) -> Package:
        self.get_owned_route(user_id, route_id)

        if stop_id is not None:
            self._get_stop(route_id, stop_id, "Stop not found on this route")

        if barcode:
            duplicate = self.db.query(Package.package_id).filter(
                Package.route_id == route_id,
                Package.barcode == barcode
            ).first()
            if duplicate:
                raise AppError.conflict("A package with that barcode is already on this route")

        package = Package(
            route_id=route_id,
            stop_id=stop_id,
            tracking_number=tracking_number,
            barcode=barcode or None,
            status=PackageStatus.SCANNED_IN,
            scanned_at=utcnow(),
            **{k: v for k, v in fields.items() if k in PACKAGE_FIELDS and v is not None},
        )
        try:
            with self._transaction():
                self.db.add(package)
                self._bump(route_id, Route.total_packages, 1)
        except IntegrityError:
            raise AppError.conflict("A package with that barcode is already on this route")

        self.db.refresh(package)
        return package

    def _set_package_status(
        self,
        package: Package,
        status: PackageStatus,
        notes: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> Package:
        previous = package.status
        delta = counter_delta(previous, status, PackageStatus.DELIVERED, self.decrement_on_revert)

        with self._transaction():
            package.status = status
            if notes is not None:
                package.notes = notes
            if recipient_name is not None:
                package.recipient_name = recipient_name
            if delta > 0:
                package.delivered_at = utcnow()
            self._bump(package.route_id, Route.delivered_packages, delta)

        self.db.refresh(package)
        if delta > 0:
            logger.info(f"Package {package.package_id} delivered on route {package.route_id}")
        return package

    def scan_package(self, user_id: int, route_id: int, barcode: str) -> Package:
        self.get_owned_route(user_id, route_id)

        package = self.db.query(Package).filter(
            Package.route_id == route_id,
            Package.barcode == barcode
        ).first()
        if not package:
            raise AppError.not_found("Package with that barcode not found in this route")

        next_status = SCAN_PROGRESSION.get(package.status, package.status)
        return self._set_package_status(package, next_status)

    def update_package_status(
        self,
        user_id: int,
        route_id: int,
        package_id: int,
        status: PackageStatus,
        notes: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> Package:
        self.get_owned_route(user_id, route_id)

        package = self.db.query(Package).filter(
            Package.package_id == package_id,
            Package.route_id == route_id
        ).first()
        if not package:
            raise AppError.not_found("Package not found")

        return self._set_package_status(package, status, notes=notes, recipient_name=recipient_name)

    def list_packages(
        self,
        user_id: int,
        route_id: int,
        status: Optional[PackageStatus] = None,
    ) -> List[Package]:
        self.get_owned_route(user_id, route_id)

        query = self.db.query(Package).options(joinedload(Package.stop)).filter(
            Package.route_id == route_id
        )
        if status is not None:
            query = query.filter(Package.status == status)
        return query.order_by(Package.scanned_at.desc(), Package.package_id.desc()).all()
