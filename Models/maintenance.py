# Models/maintenance.py
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base, state_column_type
from .states import MaintenanceState

class Maintenance(Base):
    __tablename__ = 'maintenance'

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    # Job details
    scheduled_date = Column(Date, nullable=False)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False)
    cost = Column(Float, nullable=False, default=0.0)

    state = Column(state_column_type(MaintenanceState), nullable=False, default=MaintenanceState.SCHEDULED, index=True)
    completed_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vehicle = relationship("Vehicle", back_populates="maintenance")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Maintenance {self.id} vehicle={self.vehicle_id} ({self.state.value})>"
