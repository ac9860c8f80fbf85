from fastapi import APIRouter, Depends, Query, status
from pydantic import Field
from typing import Optional
from models.package import PackageStatus
from routes.delivery_routes import get_tracker
from services.route_tracker import RouteTracker
from utils.dependencies import AuthPayload, authenticate
from utils.schemas import CamelModel

router = APIRouter(prefix="/routes", tags=["Packages"])


# ============================================================================
# SCHEMAS
# ============================================================================

class AddPackageRequest(CamelModel):
    tracking_number: str = Field(..., min_length=1, max_length=255)
    barcode: Optional[str] = Field(None, max_length=255)
    stop_id: Optional[int] = None
    recipient_name: Optional[str] = Field(None, max_length=255)
    priority: Optional[str] = Field(None, max_length=50)
    recipient_type: Optional[str] = Field(None, max_length=100)
    requires_signature: Optional[bool] = None
    temperature_sensitive: Optional[bool] = None
    temperature_range: Optional[str] = Field(None, max_length=50)
    delivery_instructions: Optional[str] = None


class ScanPackageRequest(CamelModel):
    barcode: str = Field(..., min_length=1, max_length=255)


class UpdatePackageRequest(CamelModel):
    status: PackageStatus
    notes: Optional[str] = None
    recipient_name: Optional[str] = Field(None, max_length=255)


# ============================================================================
# ROUTES
# ============================================================================

@router.post("/{route_id}/packages", status_code=status.HTTP_201_CREATED)
def add_package(
    route_id: int,
    request: AddPackageRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    """Register a package on the route, already SCANNED_IN"""
    fields = request.model_dump(exclude={"tracking_number", "barcode", "stop_id"})
    package = tracker.add_package(
        auth.user_id,
        route_id,
        tracking_number=request.tracking_number,
        barcode=request.barcode,
        stop_id=request.stop_id,
        **fields,
    )
    return {"package": package.to_dict(include_stop=True)}


@router.post("/{route_id}/packages/scan")
def scan_package(
    route_id: int,
    request: ScanPackageRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    """Advance a package one step by barcode

    SCANNED_IN goes out for delivery, OUT_FOR_DELIVERY becomes DELIVERED,
    any other status is left as is.
    """
    package = tracker.scan_package(auth.user_id, route_id, request.barcode)
    return {"package": package.to_dict()}


@router.patch("/{route_id}/packages/{package_id}")
def update_package(
    route_id: int,
    package_id: int,
    request: UpdatePackageRequest,
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    package = tracker.update_package_status(
        auth.user_id,
        route_id,
        package_id,
        request.status,
        notes=request.notes,
        recipient_name=request.recipient_name,
    )
    return {"package": package.to_dict()}


@router.get("/{route_id}/packages")
def list_packages(
    route_id: int,
    package_status: Optional[PackageStatus] = Query(None, alias="status"),
    auth: AuthPayload = Depends(authenticate),
    tracker: RouteTracker = Depends(get_tracker)
):
    packages = tracker.list_packages(auth.user_id, route_id, status=package_status)
    return {"packages": [p.to_dict(include_stop=True) for p in packages]}
