from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload
from pydantic import Field
from typing import Optional
from database import get_db
from models.delivery_platform import DeliveryPlatform
from models.platform_link import PlatformLink
from services.dashboard import build_dashboard
from utils.dependencies import AuthPayload, authenticate
from utils.errors import AppError
from utils.schemas import CamelModel
from utils.time_utils import utcnow
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# ============================================================================
# SCHEMAS
# ============================================================================

class LinkPlatformRequest(CamelModel):
    platform_id: int
    display_name: Optional[str] = Field(None, max_length=255)
    username: Optional[str] = Field(None, max_length=255)


class ReorderLinkRequest(CamelModel):
    sort_order: int = Field(..., ge=0)


def _get_owned_link(db: Session, user_id: int, link_id: int, active_only: bool = False) -> PlatformLink:
    query = db.query(PlatformLink).options(joinedload(PlatformLink.platform)).filter(
        PlatformLink.link_id == link_id,
        PlatformLink.user_id == user_id
    )
    if active_only:
        query = query.filter(PlatformLink.is_active == True)
    link = query.first()
    if not link:
        raise AppError.not_found("Platform link not found")
    return link


# ============================================================================
# ROUTES
# ============================================================================

@router.get("")
def get_dashboard(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Unified worker dashboard"""
    return build_dashboard(db, auth.user_id)


@router.post("/link", status_code=status.HTTP_201_CREATED)
def link_platform(
    request: LinkPlatformRequest,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Link a catalog platform to the current user

    An unlinked (inactive) link for the same platform is reactivated; an
    active one is a conflict.
    """
    platform = db.query(DeliveryPlatform).filter(
        DeliveryPlatform.platform_id == request.platform_id,
        DeliveryPlatform.is_active == True
    ).first()
    if not platform:
        raise AppError.not_found("Platform not found")

    link = db.query(PlatformLink).filter(
        PlatformLink.user_id == auth.user_id,
        PlatformLink.platform_id == platform.platform_id
    ).first()

    if link and link.is_active:
        raise AppError.conflict("Platform already linked")

    if link:
        link.is_active = True
        link.display_name = request.display_name
        link.username = request.username
    else:
        link = PlatformLink(
            user_id=auth.user_id,
            platform_id=platform.platform_id,
            display_name=request.display_name,
            username=request.username,
            is_active=True,
        )
        db.add(link)

    db.commit()
    db.refresh(link)

    logger.info(f"User {auth.user_id} linked platform {platform.slug}")
    return {"link": link.to_dict()}


@router.delete("/link/{link_id}")
def unlink_platform(
    link_id: int,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    link = _get_owned_link(db, auth.user_id, link_id)

    link.is_active = False
    db.commit()

    return {"message": "Platform unlinked"}


@router.put("/link/{link_id}/reorder")
def reorder_link(
    link_id: int,
    request: ReorderLinkRequest,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    link = _get_owned_link(db, auth.user_id, link_id)

    link.sort_order = request.sort_order
    db.commit()
    db.refresh(link)

    return {"link": link.to_dict()}


@router.post("/launch/{link_id}")
def launch_platform(
    link_id: int,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Record the launch and hand back where the app should jump to"""
    link = _get_owned_link(db, auth.user_id, link_id, active_only=True)

    link.last_accessed = utcnow()
    db.commit()

    platform = link.platform
    return {
        "platform": platform.to_dict(),
        "launchUrl": platform.deep_link_scheme or platform.web_portal_url,
        "androidPackage": platform.android_package,
        "iosScheme": platform.ios_scheme,
    }
