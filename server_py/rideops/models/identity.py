import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from rideops.core.database import Base


def _new_identity_id() -> str:
    return str(uuid.uuid4())


class AuthIdentity(Base):
    """Учетная запись для входа (используется при IDENTITY_BACKEND=database)."""

    __tablename__ = "auth_identities"

    id = Column(String(36), primary_key=True, default=_new_identity_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    user_metadata = Column(JSON, nullable=True)  # {"name", "phone", "user_type"}
    email_confirmed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
