from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Enum, JSON, Index
from core.db import Base

INSPECTION_TYPES = ("Initial", "Second", "Final")

class Inspection(Base):
    __tablename__ = "inspections"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    # JSON (not JSONB) keeps category/item order as defined
    checklist = Column(JSON, nullable=False)
    inspection_type = Column(Enum(*INSPECTION_TYPES, name="inspection_type"), nullable=False)
    vehicle_registration = Column(String, nullable=False)
    vehicle_make = Column(String, nullable=False)
    vehicle_model = Column(String, nullable=False)
    vehicle_mileage = Column(Integer, nullable=False, default=0)
    driver_id = Column(String, nullable=True)  # no FK: drivers may be deleted later
    driver_name = Column(String, nullable=True)
    general_comments = Column(Text, nullable=True)
    inspector_name = Column(String, nullable=True)
    signature_data_url = Column(Text, nullable=True)
    synced = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_inspections_user_created", "user_id", "created_at"),
    )
