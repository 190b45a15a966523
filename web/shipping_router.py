import logging

from fastapi import APIRouter

from models.shipping import ShippingRatesRequest, ShippingQuoteRequest, ShippingAddressDTO
from services.shipping import ShippingService
from web.dependencies import generate_correlation_id

logger = logging.getLogger(__name__)

shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.post("/rates")
async def get_shipping_rates(payload: ShippingRatesRequest):
    """
    Rate options for a cart: UPS parcel below 20,000 dowels, TQL freight above.

    A failed freight quote still answers 200 with a single manual-quote
    option; a failed parcel quote is a 500.
    """
    correlation_id = generate_correlation_id()
    logger.info(f"[{correlation_id}] Shipping rates requested for {len(payload.cart_items)} cart item(s)")
    result = await ShippingService.get_shipping_rates(payload.address, payload.cart_items)
    logger.info(f"[{correlation_id}] {len(result.rates)} {result.provider.value} rate(s) returned")
    return {"success": True, **result.model_dump(mode="json")}


@shipping_router.post("/quote")
async def get_order_quote(payload: ShippingQuoteRequest):
    totals = ShippingService.calculate_order_total_with_rate(payload.subtotal, payload.shipping_rate, payload.state)
    return {"success": True, **totals.model_dump()}


@shipping_router.post("/address/validate")
async def validate_address(payload: ShippingAddressDTO):
    validation = ShippingService.validate_address(payload)
    return {"success": True, "valid": validation.is_valid, "issues": validation.issues}
