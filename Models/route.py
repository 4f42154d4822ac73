# Models/route.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base

class Route(Base):
    __tablename__ = 'routes'

    # Primary identifiers
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # Endpoints and estimates
    origin = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    distance_km = Column(Float, nullable=False)
    estimated_minutes = Column(Integer, nullable=False)

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trips = relationship("Trip", back_populates="route")

    def __repr__(self):
        return f"<Route {self.name} ({self.origin} -> {self.destination})>"
