# the cart lives client-side; the backend only sees snapshots of it at checkout
# and shipping time, so these are plain DTOs without a table
from pydantic import BaseModel, Field

# Product families are distinguished by name
KIT_PRODUCT_NAME = "Force Dowels Kit"
DOWEL_PRODUCT_NAME = "Force Dowels"


class CartItemDTO(BaseModel):
    id: str
    name: str
    quantity: int = Field(..., gt=0)
    tier: str
    price_per_unit: float = Field(..., ge=0)

    @property
    def is_kit(self) -> bool:
        return self.name == KIT_PRODUCT_NAME

    @property
    def is_dowel(self) -> bool:
        return self.name == DOWEL_PRODUCT_NAME

    @property
    def line_total(self) -> float:
        return self.quantity * self.price_per_unit


class GuestCheckoutValidationDTO(BaseModel):
    """Result of classifying a cart snapshot against guest checkout rules."""
    is_allowed: bool
    requires_auth: bool
    total_dowel_quantity: int
    has_kits: bool
    restricted_items: list[str] = []
    reason: str | None = None


class CallToActionDTO(BaseModel):
    text: str
    href: str


class AuthCallToActionDTO(BaseModel):
    primary: CallToActionDTO
    secondary: CallToActionDTO | None = None


class GuestCheckoutRequest(BaseModel):
    cart_items: list[CartItemDTO]
