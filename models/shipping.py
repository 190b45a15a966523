from pydantic import BaseModel, Field

from enums.shipping_provider import ShippingProvider
from models.cart import CartItemDTO


class ShippingAddressDTO(BaseModel):
    name: str = Field(..., min_length=1)
    address: str
    city: str
    state: str
    zip: str
    country: str = "US"


class PackageTierDTO(BaseModel):
    """Packaging bracket used for parcel dimensions and freight quotes."""
    tier_name: str
    max_quantity: int
    package_count: int
    package_type: str  # BOX | PALLET
    weight_lbs: int
    dimensions_in: tuple[int, int, int]


class ShippingRateDTO(BaseModel):
    id: str
    service: str
    carrier: str
    rate: float
    currency: str = "USD"
    delivery_days: int | None = None
    delivery_date: str | None = None
    delivery_date_guaranteed: bool = False
    provider: ShippingProvider
    display_name: str
    estimated_delivery: str


class TaxInfoDTO(BaseModel):
    rate: float
    amount: float


class OrderTotalsDTO(BaseModel):
    subtotal: float
    shipping: float
    tax: TaxInfoDTO
    total: float


class ShippingRatesRequest(BaseModel):
    address: ShippingAddressDTO
    cart_items: list[CartItemDTO] = Field(..., min_length=1)


class ShippingQuoteRequest(BaseModel):
    subtotal: float = Field(..., ge=0)
    shipping_rate: float = Field(0.0, ge=0)
    state: str = Field(..., min_length=2, max_length=2)


class ShippingRatesDTO(BaseModel):
    """Rate options for a cart. provider differs from expected_provider when a fallback was used."""
    provider: ShippingProvider
    expected_provider: ShippingProvider
    total_quantity: int
    fallback_used: bool
    rates: list[ShippingRateDTO]


class AddressValidationDTO(BaseModel):
    is_valid: bool
    issues: list[str] = []
