import logging

from models.cart import CartItemDTO, GuestCheckoutValidationDTO, AuthCallToActionDTO, CallToActionDTO

logger = logging.getLogger(__name__)

# Largest dowel quantity a guest may check out (inclusive)
GUEST_DOWEL_LIMIT = 5000

SIGN_UP_URL = "/sign-up?redirect=/checkout"
SIGN_IN_URL = "/sign-in?redirect=/checkout"
CHECKOUT_URL = "/checkout"


class GuestCheckoutService:

    @staticmethod
    def validate_guest_checkout(cart_items: list[CartItemDTO]) -> GuestCheckoutValidationDTO:
        """
        Classify a cart snapshot against the guest checkout rules.

        Kits are fixed-quantity and never restricted. Dowels are summed across
        all lines; more than 5,000 in total requires an account.
        """
        kit_items = [item for item in cart_items if item.is_kit]
        dowel_items = [item for item in cart_items if item.is_dowel]

        total_dowel_quantity = sum(item.quantity for item in dowel_items)
        has_kits = len(kit_items) > 0

        if total_dowel_quantity <= GUEST_DOWEL_LIMIT:
            return GuestCheckoutValidationDTO(
                is_allowed=True,
                requires_auth=False,
                total_dowel_quantity=total_dowel_quantity,
                has_kits=has_kits,
                restricted_items=[],
            )

        return GuestCheckoutValidationDTO(
            is_allowed=False,
            requires_auth=True,
            total_dowel_quantity=total_dowel_quantity,
            has_kits=has_kits,
            restricted_items=[f"{total_dowel_quantity:,} Force Dowels (exceeds {GUEST_DOWEL_LIMIT:,} limit)"],
            reason=(
                f"Orders with more than {GUEST_DOWEL_LIMIT:,} dowels require an account for order tracking "
                f"and business verification. Your cart contains {total_dowel_quantity:,} dowels."
            ),
        )

    @staticmethod
    def get_auth_required_message(validation: GuestCheckoutValidationDTO) -> str | None:
        if validation.is_allowed:
            return None
        return validation.reason or "An account is required to complete this order."

    @staticmethod
    def get_auth_call_to_action(validation: GuestCheckoutValidationDTO) -> AuthCallToActionDTO:
        if validation.is_allowed:
            return AuthCallToActionDTO(
                primary=CallToActionDTO(text="Continue as Guest", href=CHECKOUT_URL),
            )
        return AuthCallToActionDTO(
            primary=CallToActionDTO(text="Create Account", href=SIGN_UP_URL),
            secondary=CallToActionDTO(text="Sign In", href=SIGN_IN_URL),
        )
