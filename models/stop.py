from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, Float, Index
from sqlalchemy.orm import relationship
from database import Base
import enum


class StopStatus(str, enum.Enum):
    PENDING = "PENDING"
    ARRIVED = "ARRIVED"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"
    ATTEMPTED = "ATTEMPTED"


class Stop(Base):
    __tablename__ = "stops"
    __table_args__ = (
        Index("ix_stops_route_sequence", "route_id", "sequence"),
    )

    stop_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.route_id", ondelete="CASCADE"), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    sequence = Column(Integer, nullable=False)
    status = Column(Enum(StopStatus), nullable=False, default=StopStatus.PENDING)
    arrived_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    proof_photo_url = Column(String(500), nullable=True)

    # Medical / facility deliveries
    facility_name = Column(String(255), nullable=True)
    facility_type = Column(String(100), nullable=True)
    contact_name = Column(String(255), nullable=True)
    contact_phone = Column(String(30), nullable=True)
    delivery_window = Column(String(100), nullable=True)

    # Relationships
    route = relationship("Route", back_populates="stops")
    packages = relationship("Package", back_populates="stop")

    def to_summary(self) -> dict:
        return {
            "id": self.stop_id,
            "address": self.address,
            "sequence": self.sequence,
        }

    def to_dict(self, include_packages: bool = False) -> dict:
        data = {
            "id": self.stop_id,
            "routeId": self.route_id,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "sequence": self.sequence,
            "status": self.status.value,
            "arrivedAt": self.arrived_at.isoformat() if self.arrived_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "notes": self.notes,
            "proofPhotoUrl": self.proof_photo_url,
            "facilityName": self.facility_name,
            "facilityType": self.facility_type,
            "contactName": self.contact_name,
            "contactPhone": self.contact_phone,
            "deliveryWindow": self.delivery_window,
        }
        if include_packages:
            data["packages"] = [p.to_dict() for p in self.packages]
        return data
