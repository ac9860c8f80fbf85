from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum


class PackageStatus(str, enum.Enum):
    PENDING = "PENDING"
    SCANNED_IN = "SCANNED_IN"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    DAMAGED = "DAMAGED"


class Package(Base):
    __tablename__ = "packages"
    __table_args__ = (
        # NULL barcodes are not compared, so unbarcoded packages can repeat
        UniqueConstraint("route_id", "barcode", name="uq_packages_route_barcode"),
    )

    package_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.route_id", ondelete="CASCADE"), nullable=False, index=True)
    stop_id = Column(Integer, ForeignKey("stops.stop_id", ondelete="SET NULL"), nullable=True)
    tracking_number = Column(String(255), nullable=False)
    barcode = Column(String(255), nullable=True)
    status = Column(Enum(PackageStatus), nullable=False, default=PackageStatus.PENDING)
    scanned_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    recipient_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Medical delivery fields
    priority = Column(String(50), nullable=True)
    recipient_type = Column(String(100), nullable=True)
    requires_signature = Column(Boolean, nullable=False, default=False)
    signature_url = Column(String(500), nullable=True)
    temperature_sensitive = Column(Boolean, nullable=False, default=False)
    temperature_range = Column(String(50), nullable=True)
    delivery_instructions = Column(Text, nullable=True)

    # Relationships
    route = relationship("Route", back_populates="packages")
    stop = relationship("Stop", back_populates="packages")

    def to_dict(self, include_stop: bool = False) -> dict:
        data = {
            "id": self.package_id,
            "routeId": self.route_id,
            "stopId": self.stop_id,
            "trackingNumber": self.tracking_number,
            "barcode": self.barcode,
            "status": self.status.value,
            "scannedAt": self.scanned_at.isoformat() if self.scanned_at else None,
            "deliveredAt": self.delivered_at.isoformat() if self.delivered_at else None,
            "recipientName": self.recipient_name,
            "notes": self.notes,
            "priority": self.priority,
            "recipientType": self.recipient_type,
            "requiresSignature": bool(self.requires_signature),
            "signatureUrl": self.signature_url,
            "temperatureSensitive": bool(self.temperature_sensitive),
            "temperatureRange": self.temperature_range,
            "deliveryInstructions": self.delivery_instructions,
        }
        if include_stop:
            data["stop"] = self.stop.to_summary() if self.stop is not None else None
        return data
