from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, Time, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from rideops.core.database import Base

class Ride(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True, index=True)

    # Маршрут
    pickup_location = Column(String, nullable=False)
    dropoff_location = Column(String, nullable=False)
    pickup_date = Column(Date, nullable=False)
    pickup_time = Column(Time, nullable=False)

    # Детали поездки
    status = Column(String(16), default="Pending", index=True)  # Pending, Confirmed, In Progress, Completed, Cancelled
    trip_type = Column(String, nullable=False)
    vehicle_type = Column(String, nullable=False)
    passengers = Column(Integer, default=1)
    price = Column(Float, nullable=False)
    payment_status = Column(String(16), default="Pending")
    special_requirements = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Заполняет водитель в пути
    current_location = Column(String, nullable=True)
    estimated_arrival_time = Column(String, nullable=True)
    driver_notes = Column(Text, nullable=True)

    created_by = Column(String(36), nullable=True)  # identity id
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="rides")
    driver = relationship("Driver", back_populates="rides")
