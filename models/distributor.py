from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, func, Index

from models.base import Base


class Distributor(Base):
    """An approved distributor, shown on the distributor map."""
    __tablename__ = 'distributors'

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    website = Column(String(255), nullable=True)
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    zip_code = Column(String(20), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    territory = Column(Text, nullable=True)
    business_type = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    distribution_request_id = Column(Integer, ForeignKey('distribution_requests.id', ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        Index('idx_distributors_is_active', 'is_active'),
    )


class DistributorDTO(BaseModel):
    id: int | None = None
    business_name: str
    contact_name: str
    email: str
    phone: str | None = None
    website: str | None = None
    street: str
    city: str
    state: str
    zip_code: str
    latitude: float
    longitude: float
    territory: str | None = None
    business_type: str | None = None
    is_active: bool = True
    distribution_request_id: int | None = None
    created_at: datetime | None = None


class NearbyDistributorDTO(DistributorDTO):
    distance_miles: float


class CoordinatesDTO(BaseModel):
    latitude: float
    longitude: float
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
