from fastapi import APIRouter, Query

from services.pricing import PricingService, PRICING_TIERS, MIN_ORDER_QUANTITY, MAX_ORDER_QUANTITY, QUANTITY_INCREMENT

pricing_router = APIRouter(prefix="/pricing", tags=["pricing"])


@pricing_router.get("/tiers")
async def get_pricing_tiers():
    return {
        "success": True,
        "tiers": [tier.model_dump() for tier in PRICING_TIERS],
        "min_quantity": MIN_ORDER_QUANTITY,
        "max_quantity": MAX_ORDER_QUANTITY,
        "increment": QUANTITY_INCREMENT,
    }


@pricing_router.get("/quote")
async def get_price_quote(quantity: int = Query(..., gt=0)):
    tier_info = PricingService.get_tier_info(quantity)
    return {
        "success": True,
        **tier_info.model_dump(),
        "suggested_quantity": PricingService.round_to_valid_quantity(quantity),
    }
