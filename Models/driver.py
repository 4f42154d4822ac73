# Models/driver.py
from sqlalchemy import Column, Integer, String, DateTime, Float, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base, state_column_type
from .states import DriverState

class Driver(Base):
    __tablename__ = 'drivers'
    __table_args__ = (
        CheckConstraint('cumulative_hours >= 0', name='ck_driver_hours_non_negative'),
    )

    # Primary identifiers
    id = Column(Integer, primary_key=True, index=True)
    national_id = Column(String, unique=True, nullable=False, index=True)

    # Personal information
    name = Column(String, nullable=False)
    license_number = Column(String, nullable=False)
    phone = Column(String, nullable=True)

    # Account status
    state = Column(state_column_type(DriverState), nullable=False, default=DriverState.ACTIVE)

    # Incremented only by trip completion
    cumulative_hours = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trips = relationship("Trip", back_populates="driver")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Driver {self.name} ({self.national_id})>"
