import logging
import math

from models.price_tier import PricingTierDTO, TierInfoDTO
from utils.tier_validation import validate_tier_coverage

logger = logging.getLogger(__name__)

MIN_ORDER_QUANTITY = 5000
MAX_ORDER_QUANTITY = 960000
QUANTITY_INCREMENT = 5000

# Range labels are the ones printed on the price sheet; min/max are inclusive and contiguous
PRICING_TIERS: tuple[PricingTierDTO, ...] = (
    PricingTierDTO(range="5,000-20,000", min_quantity=5000, max_quantity=20000, price_per_unit=0.0720),
    PricingTierDTO(range="<20,000-160,000", min_quantity=20001, max_quantity=160000, price_per_unit=0.0675),
    PricingTierDTO(range="<160,000-960,000", min_quantity=160001, max_quantity=960000, price_per_unit=0.0630),
)

_is_valid, _error = validate_tier_coverage(list(PRICING_TIERS))
if not _is_valid:
    raise RuntimeError(f"Invalid pricing tier table: {_error}")


class PricingService:
    """Service for the fixed dowel price schedule."""

    @staticmethod
    def get_pricing_tier(quantity: int) -> PricingTierDTO | None:
        """
        Find the pricing tier for a quantity.

        Classic tiered pricing: every unit gets the price of the tier the
        total quantity falls into.

        Returns:
            The matching tier, None below the minimum order quantity.
            Quantities above the last tier's max are clamped to the last tier.
        """
        if quantity < PRICING_TIERS[0].min_quantity:
            return None

        for tier in PRICING_TIERS:
            if tier.min_quantity <= quantity <= tier.max_quantity:
                return tier

        # Above the schedule: volume ceiling, keep the best price
        logger.debug(f"Quantity {quantity} above top tier, clamping to '{PRICING_TIERS[-1].range}'")
        return PRICING_TIERS[-1]

    @staticmethod
    def calculate_price_per_unit(quantity: int) -> float | None:
        tier = PricingService.get_pricing_tier(quantity)
        return tier.price_per_unit if tier else None

    @staticmethod
    def calculate_total_price(quantity: int) -> float | None:
        price_per_unit = PricingService.calculate_price_per_unit(quantity)
        return round(quantity * price_per_unit, 2) if price_per_unit is not None else None

    @staticmethod
    def is_valid_quantity_increment(quantity: int) -> bool:
        if quantity < MIN_ORDER_QUANTITY or quantity > MAX_ORDER_QUANTITY:
            return False
        return quantity % QUANTITY_INCREMENT == 0

    @staticmethod
    def round_to_valid_quantity(quantity: int) -> int:
        """Round to the nearest 5,000 (halves up), kept within the orderable range."""
        bounded_quantity = max(MIN_ORDER_QUANTITY, min(MAX_ORDER_QUANTITY, quantity))
        rounded = math.floor(bounded_quantity / QUANTITY_INCREMENT + 0.5) * QUANTITY_INCREMENT
        return max(MIN_ORDER_QUANTITY, min(MAX_ORDER_QUANTITY, rounded))

    @staticmethod
    def get_tier_info(quantity: int) -> TierInfoDTO:
        tier = PricingService.get_pricing_tier(quantity)
        price_per_unit = tier.price_per_unit if tier else 0.0
        total_price = round(quantity * price_per_unit, 2)
        return TierInfoDTO(
            quantity=quantity,
            tier=tier,
            price_per_unit=price_per_unit,
            total_price=total_price,
            formatted_quantity=format_number(quantity),
            formatted_price_per_unit=f"${price_per_unit:.4f}",
            formatted_total_price=format_currency(total_price),
            is_valid_increment=PricingService.is_valid_quantity_increment(quantity),
        )


def format_number(number: int) -> str:
    return f"{number:,}"


def format_currency(amount: float) -> str:
    """Format as US dollars, e.g. 1234.5 -> $1,234.50 and -3 -> -$3.00."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
