from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Boolean, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import enum


class HubRole(str, enum.Enum):
    DRIVER = "DRIVER"
    DISPATCHER = "DISPATCHER"
    MANAGER = "MANAGER"
    OWNER = "OWNER"


class Hub(Base):
    __tablename__ = "hubs"

    hub_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    memberships = relationship("HubMembership", back_populates="hub", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.hub_id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "phone": self.phone,
            "isActive": bool(self.is_active),
        }


class HubMembership(Base):
    __tablename__ = "hub_memberships"

    membership_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # One hub per user
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False)
    hub_id = Column(Integer, ForeignKey("hubs.hub_id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(HubRole), nullable=False, default=HubRole.DRIVER)
    joined_at = Column(DateTime, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="hub_membership")
    hub = relationship("Hub", back_populates="memberships")

    def to_dict(self, include_hub: bool = False, include_user: bool = False) -> dict:
        data = {
            "id": self.membership_id,
            "userId": self.user_id,
            "hubId": self.hub_id,
            "role": self.role.value,
            "joinedAt": self.joined_at.isoformat() if self.joined_at else None,
        }
        if include_hub:
            data["hub"] = self.hub.to_dict()
        if include_user:
            data["user"] = {
                "id": self.user.user_id,
                "email": self.user.email,
                "firstName": self.user.first_name,
                "lastName": self.user.last_name,
                "phone": self.user.phone,
            }
        return data
