# Models/vehicle.py
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base, state_column_type
from .states import VehicleState

class Vehicle(Base):
    __tablename__ = 'vehicles'
    __table_args__ = (
        CheckConstraint('odometer_km >= 0', name='ck_vehicle_odometer_non_negative'),
        CheckConstraint('service_limit_km > 0', name='ck_vehicle_service_limit_positive'),
    )

    # Primary identifiers
    id = Column(Integer, primary_key=True, index=True)
    plate = Column(String, unique=True, nullable=False, index=True)

    # Vehicle details
    model = Column(String, nullable=False)
    vehicle_type = Column(String, nullable=False)

    # Service interval: odometer counts km since the last completed maintenance
    odometer_km = Column(Integer, nullable=False, default=0)
    service_limit_km = Column(Integer, nullable=False, default=10000)

    # Written only by the lifecycle controllers
    state = Column(state_column_type(VehicleState), nullable=False, default=VehicleState.AVAILABLE, index=True)
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trips = relationship("Trip", back_populates="vehicle")
    maintenance = relationship("Maintenance", back_populates="vehicle")

    __mapper_args__ = {"version_id_col": version}

    @property
    def remaining_km(self) -> int:
        return self.service_limit_km - self.odometer_km

    def __repr__(self):
        return f"<Vehicle {self.plate} ({self.state.value})>"
