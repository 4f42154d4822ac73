# Models/alert.py
from sqlalchemy import Column, Integer, String, DateTime, Index
from datetime import datetime
from .base import Base, state_column_type
from .states import AlertCategory, AlertCondition, AlertPriority, AlertState

class Alert(Base):
    __tablename__ = 'alerts'
    __table_args__ = (
        Index('ix_alert_relation', 'category', 'related_id', 'state'),
    )

    id = Column(Integer, primary_key=True, index=True)

    # related_id points at a vehicle, driver or maintenance row depending on category
    category = Column(state_column_type(AlertCategory), nullable=False)
    related_id = Column(Integer, nullable=False)
    condition = Column(state_column_type(AlertCondition), nullable=False)

    priority = Column(state_column_type(AlertPriority), nullable=False, default=AlertPriority.MEDIUM)
    message = Column(String, nullable=False)

    state = Column(state_column_type(AlertState), nullable=False, default=AlertState.ACTIVE)
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    resolved_at = Column(DateTime, nullable=True)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Alert {self.category.value}:{self.related_id} ({self.state.value})>"
