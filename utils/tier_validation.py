"""
Pricing Tier Validation Utility

Validates the dowel price schedule for:
- Logical consistency of each tier (min <= max, positive price)
- Coverage (no gaps, no overlaps between consecutive tiers)
- Ordering (ascending by min_quantity)
"""

import logging

from models.price_tier import PricingTierDTO

logger = logging.getLogger(__name__)


def validate_tier_logic(tier: PricingTierDTO) -> tuple[bool, str | None]:
    """
    Validate a single tier's internal logic.

    Returns:
        tuple: (is_valid, error_message)

    Example:
        >>> validate_tier_logic(PricingTierDTO(range="x", min_quantity=10, max_quantity=5, price_per_unit=0.07))
        (False, "max_quantity (5) must be >= min_quantity (10)")
    """
    if tier.min_quantity <= 0:
        return False, f"min_quantity must be positive (got {tier.min_quantity})"
    if tier.max_quantity < tier.min_quantity:
        return False, f"max_quantity ({tier.max_quantity}) must be >= min_quantity ({tier.min_quantity})"
    if tier.price_per_unit <= 0:
        return False, f"price_per_unit must be positive (got {tier.price_per_unit})"
    return True, None


def validate_tier_coverage(tiers: list[PricingTierDTO]) -> tuple[bool, str | None]:
    """
    Validate that pricing tiers are ascending, contiguous and non-overlapping.

    Unlike a lookup table that must start at 1, the price schedule starts at
    the minimum order quantity; below it there is simply no tier.

    Args:
        tiers: Tiers in table order

    Returns:
        tuple: (is_valid, error_message)
            - (True, None) if valid
            - (False, "error description") if invalid

    Example:
        >>> validate_tier_coverage([
        ...     PricingTierDTO(range="a", min_quantity=5000, max_quantity=20000, price_per_unit=0.072),
        ...     PricingTierDTO(range="b", min_quantity=20001, max_quantity=160000, price_per_unit=0.0675),
        ... ])
        (True, None)
    """
    if not tiers:
        return False, "At least one pricing tier is required"

    for index, tier in enumerate(tiers):
        is_valid, error = validate_tier_logic(tier)
        if not is_valid:
            return False, f"Tier {index + 1} ({tier.range}): {error}"

    for i in range(len(tiers) - 1):
        current_max = tiers[i].max_quantity
        next_min = tiers[i + 1].min_quantity

        if next_min <= tiers[i].min_quantity:
            return False, f"Tiers must be ordered ascending by min_quantity (tier {i + 2} starts at {next_min})"

        # Check for gap: next_min should be current_max + 1
        if next_min != current_max + 1:
            if next_min > current_max + 1:
                return False, f"Gap detected: tier ends at {current_max}, next starts at {next_min}"
            else:
                return False, f"Overlap detected: tier ends at {current_max}, next starts at {next_min}"

    return True, None
