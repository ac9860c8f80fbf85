"""
Delivery platform catalog: seed data and lookups.

Run ``python -m services.platform_catalog`` to (re)seed a database by hand and
retire platforms that are no longer listed. The API only upserts the list on
startup (unless SEED_PLATFORMS_ON_STARTUP is off).
"""

from typing import List, Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
import logging

from models.delivery_platform import DeliveryPlatform
from models.platform_link import PlatformLink

logger = logging.getLogger(__name__)

PLATFORMS = [
    {
        "name": "AmerisourceBergen (Cencora)",
        "slug": "amerisourcebergen",
        "web_portal_url": "https://www.cencora.com",
        "has_official_api": False,
    },
    {
        "name": "McKesson",
        "slug": "mckesson",
        "web_portal_url": "https://www.mckesson.com",
        "has_official_api": False,
    },
    {
        "name": "Cardinal Health",
        "slug": "cardinal-health",
        "web_portal_url": "https://www.cardinalhealth.com",
        "has_official_api": False,
    },
    {
        "name": "Amazon Flex",
        "slug": "amazon-flex",
        "web_portal_url": "https://flex.amazon.com",
        "android_package": "com.amazon.flex.rabbit",
        "has_official_api": False,
    },
    {
        "name": "DoorDash",
        "slug": "doordash",
        "deep_link_scheme": "doordash://",
        "web_portal_url": "https://dasher.doordash.com",
        "android_package": "com.doordash.driverapp",
        "has_official_api": False,
    },
    {
        "name": "Uber Eats",
        "slug": "uber-eats",
        "deep_link_scheme": "uberdriver://",
        "web_portal_url": "https://drivers.uber.com",
        "android_package": "com.ubercab.driver",
        "has_official_api": False,
    },
]

VALID_SLUGS = [p["slug"] for p in PLATFORMS]


def seed_platforms(db: Session, retire_unlisted: bool = False) -> int:
    """Upsert the known platforms.

    With ``retire_unlisted`` platforms missing from PLATFORMS are
    deactivated rather than deleted, and any platform link pointing at an
    inactive platform is deactivated with them. Startup only upserts, so
    platforms added through the API survive a restart. Returns the number
    of platforms upserted.
    """
    for data in PLATFORMS:
        platform = db.query(DeliveryPlatform).filter(DeliveryPlatform.slug == data["slug"]).first()
        if platform is None:
            platform = DeliveryPlatform(slug=data["slug"])
            db.add(platform)
        for key, value in data.items():
            setattr(platform, key, value)
        platform.is_active = True

    if retire_unlisted:
        db.flush()
        _retire_unlisted(db)

    db.commit()
    logger.info(f"Seeded {len(PLATFORMS)} platforms")
    return len(PLATFORMS)


def _retire_unlisted(db: Session) -> None:
    deactivated = db.query(DeliveryPlatform).filter(
        DeliveryPlatform.slug.notin_(VALID_SLUGS),
        DeliveryPlatform.is_active == True
    ).update({"is_active": False}, synchronize_session=False)
    if deactivated:
        logger.info(f"Deactivated {deactivated} old platform(s)")

    inactive_ids = select(DeliveryPlatform.platform_id).where(DeliveryPlatform.is_active == False)
    dead_links = db.query(PlatformLink).filter(
        PlatformLink.platform_id.in_(inactive_ids),
        PlatformLink.is_active == True
    ).update({"is_active": False}, synchronize_session=False)
    if dead_links:
        logger.info(f"Deactivated {dead_links} orphaned platform link(s)")


def list_active(db: Session) -> List[DeliveryPlatform]:
    return db.query(DeliveryPlatform) \
        .filter(DeliveryPlatform.is_active == True) \
        .order_by(DeliveryPlatform.name.asc()) \
        .all()


def search(db: Session, q: str, limit: int = 20) -> List[DeliveryPlatform]:
    """Case-insensitive substring match on name or slug"""
    pattern = f"%{q.lower()}%"
    return db.query(DeliveryPlatform) \
        .filter(
            DeliveryPlatform.is_active == True,
            or_(
                DeliveryPlatform.name.ilike(pattern),
                DeliveryPlatform.slug.ilike(pattern)
            )
        ) \
        .order_by(DeliveryPlatform.name.asc()) \
        .limit(limit) \
        .all()


def get_by_slug(db: Session, slug: str) -> Optional[DeliveryPlatform]:
    return db.query(DeliveryPlatform).filter(DeliveryPlatform.slug == slug).first()


if __name__ == "__main__":
    from database import SessionLocal, init_db

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    init_db()
    session = SessionLocal()
    try:
        seed_platforms(session, retire_unlisted=True)
    finally:
        session.close()
