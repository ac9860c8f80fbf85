from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class DeliveryPlatform(Base):
    __tablename__ = "delivery_platforms"

    platform_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    logo_url = Column(String(500), nullable=True)
    deep_link_scheme = Column(String(255), nullable=True)
    web_portal_url = Column(String(500), nullable=True)
    android_package = Column(String(255), nullable=True)
    ios_scheme = Column(String(255), nullable=True)
    has_official_api = Column(Boolean, nullable=False, default=False)
    api_base_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    links = relationship("PlatformLink", back_populates="platform")

    def to_summary(self) -> dict:
        """Short form embedded in routes and links"""
        return {
            "id": self.platform_id,
            "name": self.name,
            "slug": self.slug,
            "logoUrl": self.logo_url,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_summary(),
            "deepLinkScheme": self.deep_link_scheme,
            "webPortalUrl": self.web_portal_url,
            "androidPackage": self.android_package,
            "iosScheme": self.ios_scheme,
            "hasOfficialApi": bool(self.has_official_api),
            "apiBaseUrl": self.api_base_url,
            "isActive": bool(self.is_active),
        }
