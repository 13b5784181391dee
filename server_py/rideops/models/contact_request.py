from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from rideops.core.database import Base

class ContactRequest(Base):
    __tablename__ = "contact_requests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    phone = Column(String, nullable=False)
    requested_role = Column(String(16), nullable=False)  # customer, driver
    message = Column(Text, default="")
    status = Column(String(16), default="Pending", index=True)  # Pending, Approved, Rejected
    admin_notes = Column(Text, default="")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
