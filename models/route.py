from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
from utils.time_utils import utcnow
import enum


class RouteStatus(str, enum.Enum):
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Route(Base):
    __tablename__ = "routes"
    __table_args__ = (
        Index("ix_routes_user_date", "user_id", "date"),
    )

    route_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    platform_link_id = Column(Integer, ForeignKey("platform_links.link_id", ondelete="SET NULL"), nullable=True)
    date = Column(DateTime, nullable=False, default=utcnow)
    status = Column(Enum(RouteStatus), nullable=False, default=RouteStatus.ASSIGNED)
    name = Column(String(255), nullable=True)

    # Denormalized progress, maintained by services.route_tracker
    total_stops = Column(Integer, nullable=False, default=0)
    completed_stops = Column(Integer, nullable=False, default=0)
    total_packages = Column(Integer, nullable=False, default=0)
    delivered_packages = Column(Integer, nullable=False, default=0)

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="routes")
    platform_link = relationship("PlatformLink", back_populates="routes")
    stops = relationship(
        "Stop",
        back_populates="route",
        order_by="Stop.sequence",
        cascade="all, delete-orphan",
    )
    packages = relationship("Package", back_populates="route", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        platform_link = None
        if self.platform_link is not None:
            platform_link = self.platform_link.to_dict(full_platform=False)
        return {
            "id": self.route_id,
            "userId": self.user_id,
            "platformLinkId": self.platform_link_id,
            "platformLink": platform_link,
            "date": self.date.isoformat() if self.date else None,
            "status": self.status.value,
            "name": self.name,
            "totalStops": self.total_stops,
            "completedStops": self.completed_stops,
            "totalPackages": self.total_packages,
            "deliveredPackages": self.delivered_packages,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
