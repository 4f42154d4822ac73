# Models/trip.py
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base, state_column_type
from .states import TripState

class Trip(Base):
    __tablename__ = 'trips'

    id = Column(Integer, primary_key=True, index=True)

    # Assignment
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=False, index=True)

    scheduled_date = Column(Date, nullable=False)
    cargo = Column(String, nullable=True)

    # Execution; end_time, fuel and odometer are only set on completion
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    fuel_used = Column(Float, nullable=True)
    final_odometer_km = Column(Integer, nullable=True)
    hours_worked = Column(Float, nullable=True)
    notes = Column(String, nullable=True)

    state = Column(state_column_type(TripState), nullable=False, default=TripState.PROGRAMMED, index=True)
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vehicle = relationship("Vehicle", back_populates="trips")
    driver = relationship("Driver", back_populates="trips")
    route = relationship("Route", back_populates="trips")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Trip {self.id} vehicle={self.vehicle_id} ({self.state.value})>"
