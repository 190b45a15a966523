from enum import Enum


class ShippingProvider(str, Enum):
    UPS = "UPS"  # Parcel, below 20,000 dowels
    TQL = "TQL"  # LTL freight, 20,000 dowels and up
