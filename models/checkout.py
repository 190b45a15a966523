from typing import Any

from pydantic import BaseModel, EmailStr, Field

from models.cart import CartItemDTO


class GuestContactDTO(BaseModel):
    """Contact details a guest must supply inline, since there is no account to read them from."""
    email: EmailStr
    name: str = Field(..., min_length=1)


class CheckoutSessionRequest(BaseModel):
    cart_items: list[CartItemDTO] = Field(..., min_length=1)
    shipping_info: dict[str, Any]
    billing_info: dict[str, Any]
    shipping_option: str = "standard"
    subtotal: float = Field(..., ge=0)
    shipping_cost: float = Field(0.0, ge=0)
    tax_amount: float = Field(0.0, ge=0)
    tax_rate: float = Field(0.0, ge=0)
    order_total: float = Field(..., ge=0)
    guest: GuestContactDTO | None = None


class CheckoutCustomerDTO(BaseModel):
    """Who is paying: an authenticated user or a guest identified by email."""
    user_id: str
    email: str | None = None
    name: str | None = None
    is_guest: bool = False


class CheckoutSessionDTO(BaseModel):
    session_id: str
    url: str | None = None


class CheckoutSessionStatusDTO(BaseModel):
    status: str | None = None
    payment_status: str | None = None
    customer_email: str | None = None
