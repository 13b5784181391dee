from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.orm import relationship
from rideops.core.database import Base

NOT_SPECIFIED = "Not specified"

class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), unique=True, index=True, nullable=False)  # identity id
    name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    phone = Column(String, nullable=False)
    status = Column(String(16), default="Active")

    # Автомобиль
    vehicle_model = Column(String, default=NOT_SPECIFIED)
    vehicle_year = Column(String, default=NOT_SPECIFIED)
    vehicle_plate = Column(String, default=NOT_SPECIFIED)
    vehicle_color = Column(String, default=NOT_SPECIFIED)
    license_number = Column(String, nullable=True)

    rating = Column(Float, default=5.0)
    total_rides = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rides = relationship("Ride", back_populates="driver")
