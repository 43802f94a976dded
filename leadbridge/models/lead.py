"""
Lead model — one row per lead per intake day, keyed by (partition_key, row_key).

partition_key is the yyyy-MM-dd of received_at (UTC); row_key is the
marketplace lead id. `version` is the entity tag used for optimistic
concurrency on status transitions.
"""
from sqlalchemy import Column, Integer, Text, DateTime

from leadbridge.database import Base


class LeadEntity(Base):
    __tablename__ = 'leads'

    partition_key = Column(Text, primary_key=True)
    row_key = Column(Text, primary_key=True)
    lead_id = Column(Text, nullable=False)
    customer_name = Column(Text, default='')
    customer_phone = Column(Text, nullable=True)
    job_type = Column(Text, default='')
    location = Column(Text, default='')
    description = Column(Text, nullable=True)
    budget = Column(Text, nullable=True)
    timing = Column(Text, nullable=True)
    tradie_phone = Column(Text, nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(Text, nullable=False)
    call_id = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    def to_dict(self):
        return {
            'leadId': self.lead_id,
            'customerName': self.customer_name,
            'jobType': self.job_type,
            'location': self.location,
            'tradiePhone': self.tradie_phone,
            'receivedAt': self.received_at.isoformat() if self.received_at else None,
            'status': self.status,
            'callId': self.call_id,
        }
