from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from pydantic import Field
from typing import Optional
from database import get_db
from models.hub import Hub, HubMembership, HubRole
from models.user import User, UserRole
from utils.dependencies import AuthPayload, authenticate, get_current_user
from utils.errors import AppError
from utils.schemas import CamelModel
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hubs", tags=["Hubs"])

HUB_SEARCH_LIMIT = 20
HUB_ADMIN_ROLES = (HubRole.MANAGER, HubRole.OWNER)


class CreateHubRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=30)


def _membership_of(db: Session, user_id: int) -> Optional[HubMembership]:
    return db.query(HubMembership).filter(HubMembership.user_id == user_id).first()


@router.get("")
def list_hubs(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    hubs = db.query(Hub).filter(Hub.is_active == True).order_by(Hub.name.asc()).all()
    return {"hubs": [h.to_dict() for h in hubs]}


@router.get("/search")
def search_hubs(
    q: str = Query(""),
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Active hubs whose name or city contains q"""
    pattern = f"%{q.strip()}%"
    hubs = db.query(Hub) \
        .filter(
            Hub.is_active == True,
            or_(Hub.name.ilike(pattern), Hub.city.ilike(pattern))
        ) \
        .order_by(Hub.name.asc()) \
        .limit(HUB_SEARCH_LIMIT) \
        .all()

    return {"hubs": [h.to_dict() for h in hubs]}


@router.get("/my")
def my_hub(
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    membership = db.query(HubMembership) \
        .options(joinedload(HubMembership.hub)) \
        .filter(HubMembership.user_id == auth.user_id) \
        .first()
    if not membership:
        raise AppError.not_found("Not a member of any hub")

    return {"membership": membership.to_dict(include_hub=True)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_hub(
    request: CreateHubRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a hub; the creator becomes its OWNER and a HUB_ADMIN

    A user belongs to at most one hub, so an existing member cannot create
    another one.
    """
    if _membership_of(db, user.user_id):
        raise AppError.conflict("Already a member of a hub")

    try:
        hub = Hub(**request.model_dump(), is_active=True)
        db.add(hub)
        db.flush()

        db.add(HubMembership(user_id=user.user_id, hub_id=hub.hub_id, role=HubRole.OWNER))
        # Super admins keep their role
        if user.role == UserRole.WORKER:
            user.role = UserRole.HUB_ADMIN

        db.commit()
    except Exception as e:
        logger.error(f"Create hub error: {str(e)}", exc_info=True)
        db.rollback()
        raise

    db.refresh(hub)
    logger.info(f"Hub {hub.hub_id} created by user {user.user_id}")
    return {"hub": hub.to_dict()}


@router.post("/{hub_id}/join", status_code=status.HTTP_201_CREATED)
def join_hub(
    hub_id: int,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    hub = db.query(Hub).filter(Hub.hub_id == hub_id, Hub.is_active == True).first()
    if not hub:
        raise AppError.not_found("Hub not found")

    if _membership_of(db, auth.user_id):
        raise AppError.conflict("Already a member of a hub")

    membership = HubMembership(user_id=auth.user_id, hub_id=hub.hub_id, role=HubRole.DRIVER)
    db.add(membership)
    db.commit()
    db.refresh(membership)

    return {"membership": membership.to_dict(include_hub=True)}


@router.get("/{hub_id}/members")
def list_members(
    hub_id: int,
    auth: AuthPayload = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """Hub roster, visible to its managers and owners and to super admins"""
    if auth.role != UserRole.SUPER_ADMIN:
        admin = db.query(HubMembership).filter(
            HubMembership.user_id == auth.user_id,
            HubMembership.hub_id == hub_id,
            HubMembership.role.in_(HUB_ADMIN_ROLES)
        ).first()
        if not admin:
            raise AppError.forbidden("Admin access required")

    members = db.query(HubMembership) \
        .options(joinedload(HubMembership.user)) \
        .filter(HubMembership.hub_id == hub_id) \
        .order_by(HubMembership.joined_at.asc(), HubMembership.membership_id.asc()) \
        .all()

    return {"members": [m.to_dict(include_user=True) for m in members]}
