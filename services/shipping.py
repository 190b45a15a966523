"""
Shipping Service

Rates, packaging and sales tax for dowel orders:
- Orders below 20,000 dowels ship as UPS parcels (Rating API, Shop option)
- Orders of 20,000 and up ship as LTL freight quoted by TQL
- A failed TQL quote degrades to a single "manual quote" option
- State sales tax is applied to subtotal + shipping
"""

import logging
import re
from datetime import date, datetime, timedelta

import config
from clients.tql_client import TQLClient
from clients.ups_client import UPSClient
from enums.shipping_provider import ShippingProvider
from exceptions.base import UpstreamServiceException
from exceptions.shipping import ShippingProviderException, InvalidAddressException
from models.cart import CartItemDTO
from models.shipping import (
    ShippingAddressDTO, PackageTierDTO, ShippingRateDTO, ShippingRatesDTO,
    TaxInfoDTO, OrderTotalsDTO, AddressValidationDTO,
)

logger = logging.getLogger(__name__)

# Dowel quantity at which parcel shipping stops and LTL freight starts
FREIGHT_THRESHOLD = 20000

ORIGIN = {
    "name": "Force Dowel Company",
    "street_address": "4455 E Nunneley Rd, Ste 103",
    "city": "Gilbert",
    "state": "AZ",
    "zip": "85296",
    "country": "US",
    "contact_name": "Shipping Department",
    "contact_phone": "4805817145",
    "hours_open": "7:30 AM",
    "hours_closed": "4:30 PM",
}

MANUAL_QUOTE_PHONE = "(480) 581-7145"
MANUAL_QUOTE_DELIVERY_DAYS = 5

# Ordered by max_quantity; a quantity is packed in the first tier that holds it
TIER_DATA: tuple[PackageTierDTO, ...] = (
    PackageTierDTO(tier_name="Small Box", max_quantity=5000, package_count=1,
                   package_type="BOX", weight_lbs=20, dimensions_in=(15, 15, 10)),
    PackageTierDTO(tier_name="Medium Box", max_quantity=10000, package_count=1,
                   package_type="BOX", weight_lbs=40, dimensions_in=(18, 18, 11)),
    PackageTierDTO(tier_name="Large Box", max_quantity=15000, package_count=1,
                   package_type="BOX", weight_lbs=60, dimensions_in=(19, 19, 12)),
    PackageTierDTO(tier_name="Box", max_quantity=20000, package_count=1,
                   package_type="BOX", weight_lbs=80, dimensions_in=(20, 20, 12)),
    PackageTierDTO(tier_name="Pallet-4-box", max_quantity=80000, package_count=1,
                   package_type="PALLET", weight_lbs=458, dimensions_in=(40, 48, 6)),
    PackageTierDTO(tier_name="Pallet-8-box", max_quantity=160000, package_count=1,
                   package_type="PALLET", weight_lbs=766, dimensions_in=(40, 48, 12)),
    PackageTierDTO(tier_name="Pallet-12-box", max_quantity=240000, package_count=1,
                   package_type="PALLET", weight_lbs=1074, dimensions_in=(40, 48, 18)),
    PackageTierDTO(tier_name="Pallet-16-box", max_quantity=320000, package_count=1,
                   package_type="PALLET", weight_lbs=1382, dimensions_in=(40, 48, 24)),
    PackageTierDTO(tier_name="Pallet-20-box", max_quantity=400000, package_count=1,
                   package_type="PALLET", weight_lbs=1690, dimensions_in=(40, 48, 30)),
    PackageTierDTO(tier_name="Pallet-24-box", max_quantity=480000, package_count=1,
                   package_type="PALLET", weight_lbs=1998, dimensions_in=(40, 48, 36)),
    PackageTierDTO(tier_name="Two-Pallet (48 boxes)", max_quantity=960000, package_count=2,
                   package_type="PALLET", weight_lbs=2000, dimensions_in=(40, 48, 36)),
)

# (minimum density in lb/ft^3, NMFC freight class), densest first
FREIGHT_CLASS_BY_DENSITY: tuple[tuple[float, str], ...] = (
    (30, "55"), (22.5, "60"), (15, "65"), (13.5, "70"), (12, "77.5"),
    (10.5, "85"), (9, "92.5"), (8, "100"), (6, "110"), (5, "125"),
    (4, "150"), (3, "175"), (2, "200"), (1, "250"),
)
LOWEST_DENSITY_FREIGHT_CLASS = "300"

UPS_SERVICE_NAMES = {
    "01": "UPS Next Day Air",
    "02": "UPS 2nd Day Air",
    "03": "UPS Ground",
    "07": "UPS Worldwide Express",
    "08": "UPS Worldwide Expedited",
    "11": "UPS Standard",
    "12": "UPS 3 Day Select",
    "13": "UPS Next Day Air Saver",
    "14": "UPS Next Day Air Early A.M.",
    "54": "UPS Worldwide Express Plus",
    "59": "UPS 2nd Day Air A.M.",
    "65": "UPS Saver",
}

# TQL errors that mean "we cannot quote this lane automatically"
TQL_AUTH_OR_LOCATION_ERRORS = (
    "TQL authentication failed",
    "Failed to authenticate with TQL API",
    "LOCATION_MISMATCH",
    "Please enter a valid city",
    "postal code/ country combination",
)

STATE_TAX_RATES: dict[str, float] = {
    "AL": 0.04, "AK": 0.0, "AZ": 0.056, "AR": 0.065, "CA": 0.0725,
    "CO": 0.029, "CT": 0.0635, "DE": 0.0, "FL": 0.06, "GA": 0.04,
    "HI": 0.04, "ID": 0.06, "IL": 0.0625, "IN": 0.07, "IA": 0.06,
    "KS": 0.065, "KY": 0.06, "LA": 0.0445, "ME": 0.055, "MD": 0.06,
    "MA": 0.0625, "MI": 0.06, "MN": 0.06875, "MS": 0.07, "MO": 0.04225,
    "MT": 0.0, "NE": 0.055, "NV": 0.0685, "NH": 0.0, "NJ": 0.06625,
    "NM": 0.05125, "NY": 0.08, "NC": 0.0475, "ND": 0.05, "OH": 0.0575,
    "OK": 0.045, "OR": 0.0, "PA": 0.06, "RI": 0.07, "SC": 0.06,
    "SD": 0.045, "TN": 0.07, "TX": 0.0625, "UT": 0.0485, "VT": 0.06,
    "VA": 0.053, "WA": 0.065, "WV": 0.06, "WI": 0.05, "WY": 0.04,
}

ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


class ShippingService:

    @staticmethod
    def get_total_quantity(cart_items: list[CartItemDTO]) -> int:
        return sum(item.quantity for item in cart_items)

    @staticmethod
    def get_provider_for_quantity(quantity: int) -> ShippingProvider:
        return ShippingProvider.UPS if quantity < FREIGHT_THRESHOLD else ShippingProvider.TQL

    @staticmethod
    def get_tier_for_quantity(quantity: int) -> PackageTierDTO:
        for tier in TIER_DATA:
            if quantity <= tier.max_quantity:
                return tier
        # Beyond two pallets nothing is defined, quote the largest shipment
        return TIER_DATA[-1]

    @staticmethod
    def determine_freight_class(weight_lbs: float, dimensions_in: tuple[int, int, int]) -> str:
        """
        NMFC freight class from density.

        Args:
            weight_lbs: Shipment weight in pounds
            dimensions_in: (length, width, height) in inches

        Returns:
            Freight class code, "55" for the densest loads up to "300"
        """
        length, width, height = dimensions_in
        volume_cubic_feet = (length * width * height) / 1728
        density = weight_lbs / volume_cubic_feet
        for minimum_density, freight_class in FREIGHT_CLASS_BY_DENSITY:
            if density >= minimum_density:
                return freight_class
        return LOWEST_DENSITY_FREIGHT_CLASS

    @staticmethod
    async def get_shipping_rates(address: ShippingAddressDTO, cart_items: list[CartItemDTO]) -> ShippingRatesDTO:
        """
        Fetch rate options from the provider matching the cart size.

        Raises:
            InvalidAddressException: US address fails the format checks
            ShippingProviderException: If UPS fails (parcel orders have no fallback)
        """
        if address.country == "US":
            ShippingService.ensure_valid_address(address)

        total_quantity = ShippingService.get_total_quantity(cart_items)
        expected_provider = ShippingService.get_provider_for_quantity(total_quantity)
        logger.info(f"Fetching {expected_provider.value} rates for {total_quantity} dowels to "
                    f"{address.city}, {address.state}")

        if expected_provider == ShippingProvider.UPS:
            rates = await ShippingService.get_ups_rates(address, total_quantity)
        else:
            try:
                rates = await ShippingService.get_tql_rates(address, total_quantity)
            except UpstreamServiceException as e:
                tier = ShippingService.get_tier_for_quantity(total_quantity)
                logger.warning(f"TQL quote failed for {total_quantity} dowels "
                               f"({tier.tier_name}, {tier.weight_lbs} lbs): {e.message}")
                rates = [ShippingService.build_manual_quote(e.message)]

        provider = rates[0].provider if rates else expected_provider
        return ShippingRatesDTO(
            provider=provider,
            expected_provider=expected_provider,
            total_quantity=total_quantity,
            fallback_used=provider != expected_provider,
            rates=rates,
        )

    @staticmethod
    def build_ups_rate_request(address: ShippingAddressDTO, total_quantity: int) -> dict:
        tier = ShippingService.get_tier_for_quantity(total_quantity)
        length, width, height = tier.dimensions_in
        origin_address = {
            "AddressLine": [ORIGIN["street_address"]],
            "City": ORIGIN["city"],
            "StateProvinceCode": ORIGIN["state"],
            "PostalCode": ORIGIN["zip"],
            "CountryCode": ORIGIN["country"],
        }
        return {
            "RateRequest": {
                "Request": {
                    "RequestOption": "Shop",
                    "TransactionReference": {"CustomerContext": "Force Dowels Shipping Rate Request"},
                },
                "PickupType": {"Code": "03", "Description": "Customer Counter"},
                "CustomerClassification": {"Code": "04", "Description": "Retail Rates"},
                "Shipment": {
                    "Shipper": {
                        "Name": ORIGIN["name"],
                        "ShipperNumber": config.UPS_ACCOUNT_NUMBER,
                        "Address": origin_address,
                    },
                    "ShipTo": {
                        "Name": address.name,
                        # No ResidentialAddressIndicator: rated as a commercial address
                        "Address": {
                            "AddressLine": [address.address],
                            "City": address.city,
                            "StateProvinceCode": address.state,
                            "PostalCode": address.zip,
                            "CountryCode": address.country,
                        },
                    },
                    "ShipFrom": {
                        "Name": ORIGIN["name"],
                        "Address": origin_address,
                    },
                    "Package": [{
                        "PackagingType": {"Code": "02", "Description": "Customer Supplied Package"},
                        "Dimensions": {
                            "UnitOfMeasurement": {"Code": "IN", "Description": "Inches"},
                            "Length": str(length),
                            "Width": str(width),
                            "Height": str(height),
                        },
                        "PackageWeight": {
                            "UnitOfMeasurement": {"Code": "LBS", "Description": "Pounds"},
                            "Weight": str(tier.weight_lbs),
                        },
                    }],
                },
            }
        }

    @staticmethod
    def parse_ups_rates(response: dict) -> list[ShippingRateDTO]:
        rated_shipments = (response.get("RateResponse") or {}).get("RatedShipment") or []
        if isinstance(rated_shipments, dict):
            rated_shipments = [rated_shipments]

        rates = []
        for shipment in rated_shipments:
            service = shipment.get("Service") or {}
            total_charges = shipment.get("TotalCharges") or {}
            service_code = service.get("Code", "")
            try:
                rate_value = float(total_charges.get("MonetaryValue") or 0)
            except ValueError:
                rate_value = 0.0
            service_name = service.get("Description") or UPS_SERVICE_NAMES.get(service_code, f"UPS Service {service_code}")

            delivery_days = None
            business_days = ((shipment.get("TimeInTransit") or {})
                             .get("ServiceSummary", {})
                             .get("EstimatedArrival", {})
                             .get("BusinessDaysInTransit"))
            if business_days:
                delivery_days = int(business_days)

            rates.append(ShippingRateDTO(
                id=f"ups-{service_code}-{rate_value}",
                service=service_name,
                carrier="UPS",
                rate=rate_value,
                currency=total_charges.get("CurrencyCode") or "USD",
                delivery_days=delivery_days,
                provider=ShippingProvider.UPS,
                display_name=service_name if service_name.startswith("UPS") else f"UPS {service_name}",
                estimated_delivery=f"{delivery_days} business days" if delivery_days else "Contact for delivery estimate",
            ))
        return sorted(rates, key=lambda rate: rate.rate)

    @staticmethod
    async def get_ups_rates(address: ShippingAddressDTO, total_quantity: int) -> list[ShippingRateDTO]:
        rate_request = ShippingService.build_ups_rate_request(address, total_quantity)
        try:
            response = await UPSClient.shop_rates(rate_request)
        except ShippingProviderException:
            raise
        except UpstreamServiceException as e:
            raise ShippingProviderException("UPS", f"UPS shipping service error: {e.message}", e.status_code) from e
        return ShippingService.parse_ups_rates(response)

    @staticmethod
    def build_tql_quote_request(address: ShippingAddressDTO, total_quantity: int,
                                shipment_date: datetime | None = None) -> dict:
        tier = ShippingService.get_tier_for_quantity(total_quantity)
        length, width, height = tier.dimensions_in
        shipment_date = shipment_date or datetime.now()
        return {
            "origin": {
                "city": ORIGIN["city"],
                "state": ORIGIN["state"],
                "postalCode": ORIGIN["zip"],
                "country": "USA",
                "name": ORIGIN["name"],
                "streetAddress": ORIGIN["street_address"],
                "contactName": ORIGIN["contact_name"],
                "contactPhone": ORIGIN["contact_phone"],
                "hoursOpen": ORIGIN["hours_open"],
                "hoursClosed": ORIGIN["hours_closed"],
            },
            "destination": {
                "city": address.city,
                "state": address.state,
                "postalCode": address.zip,
                # TQL expects ISO alpha-3 for the US
                "country": "USA" if address.country == "US" else (address.country or "USA"),
                "name": address.name,
                "streetAddress": address.address,
            },
            "quoteCommodities": [{
                "description": f"Force Dowels - {total_quantity:,} units ({tier.tier_name})",
                "weight": tier.weight_lbs,
                "dimensionLength": length,
                "dimensionWidth": width,
                "dimensionHeight": height,
                "quantity": tier.package_count,
                "freightClassCode": ShippingService.determine_freight_class(tier.weight_lbs, tier.dimensions_in),
                "unitTypeCode": "PLT" if tier.package_type == "PALLET" else "BOX",
                "nmfc": "161030",
                "isHazmat": False,
                "isStackable": True,
            }],
            "shipmentDate": shipment_date.isoformat(),
            # Dock-to-dock B2B delivery, no liftgate or residential accessorials
            "pickLocationType": "Commercial",
            "dropLocationType": "Commercial",
            "accessorials": [],
        }

    @staticmethod
    def parse_tql_rates(response: dict) -> list[ShippingRateDTO]:
        content = response.get("content") or {}
        carrier_prices = content.get("carrierPrices") or []
        if not carrier_prices:
            raise ShippingProviderException("TQL", "TQL API returned no rates")
        quote_id = content.get("quoteId")
        return [
            ShippingRateDTO(
                id=f"tql_{quote_id}_{index}",
                service=price.get("serviceLevel") or "Standard",
                carrier=price.get("carrier") or "LTL Freight",
                rate=float(price.get("customerRate") or 0),
                delivery_days=price.get("transitDays"),
                provider=ShippingProvider.TQL,
                display_name=f"{price.get('carrier') or 'LTL Freight'} {price.get('serviceLevel') or 'Standard'}",
                estimated_delivery=f"{price.get('transitDays')} business days",
            )
            for index, price in enumerate(carrier_prices)
        ]

    @staticmethod
    async def get_tql_rates(address: ShippingAddressDTO, total_quantity: int) -> list[ShippingRateDTO]:
        quote_request = ShippingService.build_tql_quote_request(address, total_quantity)
        response = await TQLClient.create_quote(quote_request)
        return ShippingService.parse_tql_rates(response)

    @staticmethod
    def build_manual_quote(error_message: str, today: date | None = None) -> ShippingRateDTO:
        today = today or date.today()
        if any(marker in error_message for marker in TQL_AUTH_OR_LOCATION_ERRORS):
            rate_id = "tql_manual_quote"
            estimated_delivery = f"Contact for quote: {MANUAL_QUOTE_PHONE}"
        else:
            rate_id = "manual_freight_quote"
            estimated_delivery = f"Contact for freight quote: {MANUAL_QUOTE_PHONE}"
        return ShippingRateDTO(
            id=rate_id,
            service="Manual Quote Required",
            carrier="LTL Freight",
            rate=0.0,
            delivery_days=MANUAL_QUOTE_DELIVERY_DAYS,
            delivery_date=(today + timedelta(days=MANUAL_QUOTE_DELIVERY_DAYS)).isoformat(),
            provider=ShippingProvider.TQL,
            display_name="LTL Freight - Manual Quote Required",
            estimated_delivery=estimated_delivery,
        )

    @staticmethod
    def get_tax_rate(state: str) -> float:
        return STATE_TAX_RATES.get((state or "").upper(), 0.0)

    @staticmethod
    def calculate_tax(amount: float, state: str) -> TaxInfoDTO:
        rate = ShippingService.get_tax_rate(state)
        return TaxInfoDTO(rate=rate, amount=round(amount * rate, 2))

    @staticmethod
    def calculate_order_total_with_rate(subtotal: float, shipping_rate: float, state: str) -> OrderTotalsDTO:
        """Tax is charged on subtotal + shipping."""
        tax = ShippingService.calculate_tax(subtotal + shipping_rate, state)
        return OrderTotalsDTO(
            subtotal=subtotal,
            shipping=shipping_rate,
            tax=tax,
            total=round(subtotal + shipping_rate + tax.amount, 2),
        )

    @staticmethod
    def validate_address(address: ShippingAddressDTO) -> AddressValidationDTO:
        issues = []
        if len((address.address or "").strip()) < 5:
            issues.append("Street address must be at least 5 characters long")
        if len((address.city or "").strip()) < 2:
            issues.append("City must be at least 2 characters long")
        if (address.state or "").upper() not in STATE_TAX_RATES:
            issues.append("Please provide a valid US state abbreviation")
        if not ZIP_PATTERN.match((address.zip or "").strip()):
            issues.append("ZIP code must be in format 12345 or 12345-6789")
        return AddressValidationDTO(is_valid=not issues, issues=issues)

    @staticmethod
    def ensure_valid_address(address: ShippingAddressDTO) -> None:
        validation = ShippingService.validate_address(address)
        if not validation.is_valid:
            raise InvalidAddressException(validation.issues)
