"""
CallEvent model — one row per successfully placed notification call.

Keyed by (partition_key = yyyy-MM-dd of created_at, row_key = provider call id).
"""
from sqlalchemy import Column, Integer, Text, DateTime

from leadbridge.database import Base


class CallEventEntity(Base):
    __tablename__ = 'call_events'

    partition_key = Column(Text, primary_key=True)
    row_key = Column(Text, primary_key=True)
    call_id = Column(Text, nullable=False)
    lead_id = Column(Text, nullable=False)
    tradie_phone = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=True)  # dialled when the tradie presses 1
    job_type = Column(Text, default='')
    location = Column(Text, default='')
    status = Column(Text, nullable=False)
    duration_seconds = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}
