from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, DECIMAL, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class EarningRecord(Base):
    __tablename__ = "earning_records"
    __table_args__ = (
        Index("ix_earning_records_user_date", "user_id", "date"),
    )

    earning_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    platform = Column(String(255), nullable=False)
    amount = Column(DECIMAL(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    tips = Column(DECIMAL(10, 2), nullable=True)
    date = Column(DateTime, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="earnings")

    def to_dict(self) -> dict:
        return {
            "id": self.earning_id,
            "platform": self.platform,
            "amount": float(self.amount) if self.amount is not None else 0.0,
            "currency": self.currency,
            "tips": float(self.tips) if self.tips is not None else None,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
