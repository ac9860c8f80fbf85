from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Boolean, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    notification_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    notification_type = Column(String(50), nullable=False, default="info")
    is_read = Column(Boolean, nullable=False, default=False)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)

    # Relationships
    user = relationship("User", back_populates="notifications")

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "title": self.title,
            "body": self.body,
            "type": self.notification_type,
            "isRead": bool(self.is_read),
            "data": self.data,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
