from sqlalchemy import Column, Integer, String, DateTime
from core.db import Base

class Vehicle(Base):
    __tablename__ = "vehicles"
    user_id = Column(String, primary_key=True)
    registration = Column(String, primary_key=True)  # normalized: trimmed, uppercase
    make = Column(String, nullable=False)
    model = Column(String, nullable=False)
    mileage = Column(Integer, nullable=False, default=0)  # last known reading
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
