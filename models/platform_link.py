from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class PlatformLink(Base):
    __tablename__ = "platform_links"
    __table_args__ = (
        UniqueConstraint("user_id", "platform_id", name="uq_platform_links_user_platform"),
    )

    link_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    platform_id = Column(Integer, ForeignKey("delivery_platforms.platform_id", ondelete="RESTRICT"), nullable=False)
    display_name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_accessed = Column(DateTime, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="platform_links")
    platform = relationship("DeliveryPlatform", back_populates="links")
    routes = relationship("Route", back_populates="platform_link")

    def to_dict(self, full_platform: bool = True) -> dict:
        platform = None
        if self.platform is not None:
            platform = self.platform.to_dict() if full_platform else self.platform.to_summary()
        return {
            "id": self.link_id,
            "userId": self.user_id,
            "platformId": self.platform_id,
            "displayName": self.display_name,
            "username": self.username,
            "isActive": bool(self.is_active),
            "lastAccessed": self.last_accessed.isoformat() if self.last_accessed else None,
            "sortOrder": self.sort_order,
            "platform": platform,
        }
