from datetime import datetime
from sqlalchemy import Column, String, DateTime
from rideops.core.database import Base

class User(Base):
    """Флаг роли: id учетной записи и ее роль на платформе."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # identity id
    email = Column(String, index=True, nullable=False)
    role = Column(String(16), default="customer")  # customer, driver, admin
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
