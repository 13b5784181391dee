from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, JSON

from rideops.core.database import Base


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(36), nullable=False, index=True)
    sender = Column(String(16), nullable=False)  # 'user' | 'admin'
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    meta = Column(JSON, nullable=True)
