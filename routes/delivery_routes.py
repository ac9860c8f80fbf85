from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from pydantic import Field
from typing import List, Optional
from datetime import date, datetime
from database import get_db
from models.route import RouteStatus
from models.stop import StopStatus
from services.route_tracker import RouteTracker
from utils.dependencies import AuthPayload, authenticate
from utils.schemas import CamelModel

router = APIRouter(prefix="/routes", tags=["Routes"])


# ============================================================================
# SCHEMAS
# ============================================================================

class CreateRouteRequest(CamelModel):
    platform_link_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    date: Optional[datetime] = None
    notes: Optional[str] = None


class UpdateRouteStatusRequest(CamelModel):
    status: RouteStatus


class StopFields(CamelModel):
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    facility_name: Optional[str] = None
    facility_type: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    delivery_window: Optional[str] = None


class AddStopRequest(StopFields):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    sequence: Optional[int] = Field(None, ge=0)


class BulkStopsRequest(CamelModel):
    stops: List[StopFields] = Field(..., min_length=1)


class UpdateStopRequest(CamelModel):
    status: StopStatus
    notes: Optional[str] = None
    proof_photo_url: Optional[str] = None


def get_tracker(db: Session = Depends(get_db)) -> RouteTracker:
    return RouteTracker(db)


# ============================================================================
# ROUTES
# ============================================================================

@router.get("")
def list_routes(
    day: Optional[date] = Query(None, alias="date", description="Day to list (YYYY-MM-DD), default today"),
    route_status: Optional[RouteStatus] = Query(None, alias="status"),
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    """The user's routes for one day, newest first"""
    routes = tracker.list_routes(auth.user_id, day=day, status=route_status)
    return {
        "routes": [
            {
                **route.to_dict(),
                "counts": {"stops": len(route.stops), "packages": len(route.packages)},
            }
            for route in routes
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_route(
    request: CreateRouteRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    route = tracker.create_route(
        auth.user_id,
        name=request.name,
        date=request.date,
        platform_link_id=request.platform_link_id,
        notes=request.notes,
    )
    return {"route": route.to_dict()}


@router.get("/{route_id}")
def get_route(
    route_id: int,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    """Route detail with stops in sequence order, each with its packages"""
    route = tracker.get_route(auth.user_id, route_id)
    return {
        "route": {
            **route.to_dict(),
            "stops": [stop.to_dict(include_packages=True) for stop in route.stops],
        }
    }


@router.patch("/{route_id}/status")
def update_route_status(
    route_id: int,
    request: UpdateRouteStatusRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    route = tracker.update_route_status(auth.user_id, route_id, request.status)
    return {"route": route.to_dict()}


@router.post("/{route_id}/stops", status_code=status.HTTP_201_CREATED)
def add_stop(
    route_id: int,
    request: AddStopRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    """Append a stop; without a sequence it goes after the current last one"""
    fields = request.model_dump(exclude={"sequence"})
    stop = tracker.add_stop(auth.user_id, route_id, sequence=request.sequence, **fields)
    return {"stop": stop.to_dict()}


@router.post("/{route_id}/stops/bulk", status_code=status.HTTP_201_CREATED)
def bulk_add_stops(
    route_id: int,
    request: BulkStopsRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    stops = tracker.bulk_add_stops(auth.user_id, route_id, [s.model_dump() for s in request.stops])
    return {
        "stops": [stop.to_dict() for stop in stops],
        "count": len(stops)
    }


@router.patch("/{route_id}/stops/{stop_id}")
def update_stop(
    route_id: int,
    stop_id: int,
    request: UpdateStopRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    stop = tracker.update_stop_status(
        auth.user_id,
        route_id,
        stop_id,
        request.status,
        notes=request.notes,
        proof_photo_url=request.proof_photo_url,
    )
    return {"stop": stop.to_dict()}
