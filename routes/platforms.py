from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session
from pydantic import Field, HttpUrl
from typing import Optional
from config import settings
from database import get_db
from models.delivery_platform import DeliveryPlatform
from models.user import UserRole
from services import platform_catalog
from utils.cache import cache, PLATFORM_LIST_KEY
from utils.dependencies import AuthPayload, optional_auth, require_role
from utils.errors import AppError
from utils.schemas import CamelModel
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/platforms", tags=["Platforms"])


class CreatePlatformRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100)
    logo_url: Optional[HttpUrl] = None
    deep_link_scheme: Optional[str] = None
    web_portal_url: Optional[HttpUrl] = None
    android_package: Optional[str] = None
    ios_scheme: Optional[str] = None
    has_official_api: bool = False
    api_base_url: Optional[HttpUrl] = None


@router.get("")
def list_platforms(
    auth: Optional[AuthPayload] = Depends(optional_auth),
    db: Session = Depends(get_db)
):
    """Active platforms, alphabetical"""
    cached = cache.get(PLATFORM_LIST_KEY)
    if cached is not None:
        return cached

    result = {
        "platforms": [p.to_dict() for p in platform_catalog.list_active(db)]
    }
    cache.set(PLATFORM_LIST_KEY, result, ttl=settings.PLATFORM_CACHE_TTL)
    return result


@router.get("/search")
def search_platforms(q: str = Query(""), db: Session = Depends(get_db)):
    """Match on name or slug, at most 20 results"""
    return {
        "platforms": [p.to_dict() for p in platform_catalog.search(db, q)]
    }


@router.get("/{slug}")
def get_platform(slug: str, db: Session = Depends(get_db)):
    platform = platform_catalog.get_by_slug(db, slug)
    if not platform:
        raise AppError.not_found("Platform not found")
    return {"platform": platform.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_platform(
    request: CreatePlatformRequest,
    auth: AuthPayload = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: Session = Depends(get_db)
):
    """Add a platform to the catalog (super admins only)"""
    clash = db.query(DeliveryPlatform).filter(
        or_(DeliveryPlatform.slug == request.slug, DeliveryPlatform.name == request.name)
    ).first()
    if clash:
        raise AppError.conflict("Platform with that name or slug already exists")

    data = request.model_dump()
    for key in ("logo_url", "web_portal_url", "api_base_url"):
        if data[key] is not None:
            data[key] = str(data[key])

    platform = DeliveryPlatform(**data, is_active=True)
    db.add(platform)
    db.commit()
    db.refresh(platform)

    cache.delete(PLATFORM_LIST_KEY)
    logger.info(f"Platform created: {platform.slug} by user {auth.user_id}")

    return {"platform": platform.to_dict()}
