from pydantic import BaseModel


class PricingTierDTO(BaseModel):
    """
    One row of the dowel price schedule.

    Both bounds are inclusive. Tiers are contiguous and ordered by min_quantity.
    """
    range: str
    min_quantity: int
    max_quantity: int
    price_per_unit: float


class TierInfoDTO(BaseModel):
    """Pricing summary for a quantity, ready for display."""
    quantity: int
    tier: PricingTierDTO | None = None
    price_per_unit: float
    total_price: float
    formatted_quantity: str
    formatted_price_per_unit: str
    formatted_total_price: str
    is_valid_increment: bool
