"""
Custom exceptions for the Force Dowels storefront.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
StorefrontException (base)
├── ValidationException                          -> 400
│   ├── GuestCheckoutNotAllowedException
│   ├── InvalidAddressException
│   └── InvalidDistributionRequestIdException
├── AuthenticationException                      -> 401
├── AuthorizationException                       -> 403
│   ├── OrderOwnershipException
│   └── InvalidWebhookSignatureException
├── NotFoundException                            -> 404
│   ├── OrderNotFoundException
│   └── DistributionRequestNotFoundException
├── ConflictException                            -> 409
│   └── DistributionRequestAlreadyProcessedException
└── UpstreamServiceException                     -> 500
    ├── PaymentProviderException
    ├── EmailDeliveryException
    └── ShippingProviderException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id=123)

Routers let them propagate; utils/error_handler.py turns them into
{"success": false, "error": ...} responses with the mapped status code.
"""

from .base import (
    StorefrontException,
    ValidationException,
    AuthenticationException,
    AuthorizationException,
    NotFoundException,
    ConflictException,
    UpstreamServiceException,
)
from .distribution import (
    InvalidDistributionRequestIdException,
    DistributionRequestNotFoundException,
    DistributionRequestAlreadyProcessedException,
)
from .email import EmailDeliveryException
from .order import OrderNotFoundException, OrderOwnershipException, GuestCheckoutNotAllowedException
from .payment import PaymentProviderException, InvalidWebhookSignatureException
from .shipping import ShippingProviderException, InvalidAddressException

__all__ = [
    # Base
    'StorefrontException',
    'ValidationException',
    'AuthenticationException',
    'AuthorizationException',
    'NotFoundException',
    'ConflictException',
    'UpstreamServiceException',

    # Distribution
    'InvalidDistributionRequestIdException',
    'DistributionRequestNotFoundException',
    'DistributionRequestAlreadyProcessedException',

    # Email
    'EmailDeliveryException',

    # Order
    'OrderNotFoundException',
    'OrderOwnershipException',
    'GuestCheckoutNotAllowedException',

    # Payment
    'PaymentProviderException',
    'InvalidWebhookSignatureException',

    # Shipping
    'ShippingProviderException',
    'InvalidAddressException',
]
