from typing import Any

from pydantic import BaseModel


class StripeEventDataDTO(BaseModel):
    object: dict[str, Any]


class StripeEventDTO(BaseModel):
    """Subset of a Stripe webhook event the storefront acts on."""
    id: str
    type: str
    data: StripeEventDataDTO
    livemode: bool = False

    @property
    def payload(self) -> dict[str, Any]:
        return self.data.object


class StripeCheckoutSessionDTO(BaseModel):
    """Fields of a Stripe Checkout Session object used for reconciliation."""
    id: str
    status: str | None = None
    payment_status: str | None = None
    payment_intent: str | None = None
    customer_email: str | None = None
    url: str | None = None
    metadata: dict[str, str] = {}
