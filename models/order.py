from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator
from sqlalchemy import Column, Integer, Float, DateTime, String, JSON, func, Index, Enum as SQLEnum

from enums.order_status import OrderStatus
from models.base import Base

# Tier label of the per-session row that carries the grand total and shipping details
ORDER_SUMMARY_TIER = "ORDER_SUMMARY"


class Order(Base):
    """
    One persisted order row.

    A paid checkout session fans out into one row per cart line plus a
    summary row (tier == ORDER_SUMMARY); all of them share stripe_session_id.
    """
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=True)
    user_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False)
    tier = Column(String(100), nullable=False)
    total_price = Column(Float, nullable=False, default=0.0)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(String(50), nullable=False, default="pending")
    stripe_session_id = Column(String(255), nullable=True)

    # Address snapshots as submitted at checkout (name, address, city, state, zip, country, ...)
    shipping_info = Column(JSON, nullable=True)
    billing_info = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_orders_user_id', 'user_id'),
        Index('idx_orders_stripe_session_id', 'stripe_session_id'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    quantity: int | None = None
    tier: str | None = None
    total_price: float | None = 0.0
    status: OrderStatus | None = None
    payment_status: str | None = None
    stripe_session_id: str | None = None
    shipping_info: dict[str, Any] | None = None
    billing_info: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderCreateDTO(BaseModel):
    """Data needed to create an order row. Status is derived from payment_status."""
    user_id: str = Field(..., min_length=1)
    user_email: str | None = None
    user_name: str | None = None
    quantity: int = Field(..., gt=0)
    tier: str = Field(..., min_length=1)
    total_price: float = Field(0.0, ge=0)
    payment_status: str | None = None
    stripe_session_id: str | None = None
    shipping_info: dict[str, Any] | None = None
    billing_info: dict[str, Any] | None = None


class CreateOrderRequest(BaseModel):
    """Body of POST /orders. The owner comes from the authenticated session."""
    quantity: int = Field(..., gt=0)
    tier: str = Field(..., min_length=1)
    total_price: float = Field(0.0, ge=0)
    payment_status: str | None = None
    stripe_session_id: str | None = None
    shipping_info: dict[str, Any] | None = None
    billing_info: dict[str, Any] | None = None


class UpdatePaymentStatusRequest(BaseModel):
    """Body of POST /orders/update-payment-status. Exactly one target is required."""
    stripe_session_id: str | None = None
    order_id: int | None = Field(None, gt=0)
    payment_status: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_target(self):
        if not self.stripe_session_id and self.order_id is None:
            raise ValueError("Either stripe_session_id or order_id is required")
        return self


class SendCompletionEmailsRequest(BaseModel):
    stripe_session_id: str = Field(..., min_length=1)


class DuplicateSessionDTO(BaseModel):
    stripe_session_id: str
    order_count: int
    order_ids: list[int]
    duplicate_order_ids: list[int]


class OrderCleanupReportDTO(BaseModel):
    sessions_with_duplicates: int
    sessions_cleaned: int
    orders_deleted: int
    final_order_count: int
    sessions: list[DuplicateSessionDTO] = []
