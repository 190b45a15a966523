import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator, model_validator
from sqlalchemy import Column, Integer, String, Text, DateTime, func, Enum as SQLEnum, Index

from enums.distribution_request_status import DistributionRequestStatus
from enums.distributor_application import BusinessType, PurchaseVolume, YesNo, ReferralSource
from models.base import Base


class DistributionRequest(Base):
    """
    A distributor application.

    unique_id is the only identifier that leaves the system (in the emailed
    accept/decline links); the integer id stays internal.
    """
    __tablename__ = 'distribution_requests'

    id = Column(Integer, primary_key=True, autoincrement=True)
    unique_id = Column(String(36), nullable=False, unique=True)

    # Contact
    full_name = Column(String(255), nullable=False)
    business_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=False)
    email_address = Column(String(255), nullable=False)

    # Business address
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    zip_code = Column(String(20), nullable=False)
    website = Column(String(255), nullable=True)

    # Business details
    business_type = Column(String(50), nullable=False)
    business_type_other = Column(String(255), nullable=True)
    years_in_business = Column(Integer, nullable=False, default=0)
    territory = Column(Text, nullable=False)
    purchase_volume = Column(String(50), nullable=False)
    sells_similar_products = Column(String(10), nullable=False)
    similar_products_details = Column(Text, nullable=True)
    hear_about_us = Column(String(50), nullable=False)
    hear_about_us_other = Column(String(255), nullable=True)

    status = Column(SQLEnum(DistributionRequestStatus), nullable=False, default=DistributionRequestStatus.PENDING)
    created_at = Column(DateTime, default=func.now())
    responded_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('idx_distribution_requests_status', 'status'),
    )


class DistributionRequestDTO(BaseModel):
    id: int | None = None
    unique_id: str | None = None
    full_name: str | None = None
    business_name: str | None = None
    phone_number: str | None = None
    email_address: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    website: str | None = None
    business_type: str | None = None
    business_type_other: str | None = None
    years_in_business: int | None = None
    territory: str | None = None
    purchase_volume: str | None = None
    sells_similar_products: str | None = None
    similar_products_details: str | None = None
    hear_about_us: str | None = None
    hear_about_us_other: str | None = None
    status: DistributionRequestStatus | None = None
    created_at: datetime | None = None
    responded_at: datetime | None = None

    @property
    def full_address(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}"


class DistributorApplicationRequest(BaseModel):
    """
    Body of POST /distributor-application.

    Conditional fields are required when the matching choice is made:
    business_type_other for "other", similar_products_details for "yes",
    hear_about_us_other for "other".
    """
    full_name: str = Field(..., min_length=2)
    business_name: str = Field(..., min_length=2)
    phone_number: str = Field(..., min_length=10)
    email_address: EmailStr

    street: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2)
    state: str = Field(..., min_length=2)
    zip_code: str = Field(..., min_length=5)
    website: HttpUrl | None = None

    business_type: BusinessType
    business_type_other: str | None = None
    years_in_business: int = Field(..., ge=0)
    territory: str = Field(..., min_length=10)
    purchase_volume: PurchaseVolume

    sells_similar_products: YesNo
    similar_products_details: str | None = None
    hear_about_us: ReferralSource
    hear_about_us_other: str | None = None

    @field_validator("website", mode="before")
    @classmethod
    def empty_website_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("phone_number")
    @classmethod
    def phone_has_digits(cls, value: str) -> str:
        if len(re.sub(r"\D", "", value)) < 10:
            raise ValueError("Please enter a valid phone number")
        return value

    @model_validator(mode="after")
    def check_conditional_fields(self):
        if self.business_type == BusinessType.OTHER and not (self.business_type_other or "").strip():
            raise ValueError("Please specify your business type")
        if self.sells_similar_products == YesNo.YES and not (self.similar_products_details or "").strip():
            raise ValueError("Please specify what similar products you sell")
        if self.hear_about_us == ReferralSource.OTHER and not (self.hear_about_us_other or "").strip():
            raise ValueError("Please specify how you heard about us")
        return self


class DistributionOutcomeDTO(BaseModel):
    """
    Result of an accept/decline transition.

    The transition is committed before side effects run; side-effect
    failures end up in warnings instead of failing the request.
    """
    request: DistributionRequestDTO
    distributor_id: int | None = None
    warnings: list[str] = []
