from enum import Enum


class BusinessType(str, Enum):
    RETAILER = "retailer"
    WHOLESALER = "wholesaler"
    INSTALLER = "installer"
    CONTRACTOR = "contractor"
    ONLINE_STORE = "online-store"
    OTHER = "other"


class PurchaseVolume(str, Enum):
    LESS_THAN_500 = "less-than-500"
    FROM_500_TO_1000 = "500-1000"
    FROM_1000_TO_5000 = "1000-5000"
    MORE_THAN_5000 = "5000-plus"


class YesNo(str, Enum):
    YES = "yes"
    NO = "no"


class ReferralSource(str, Enum):
    TRADE_SHOW = "trade-show"
    REFERRAL = "referral"
    ONLINE_SEARCH = "online-search"
    SOCIAL_MEDIA = "social-media"
    OTHER = "other"
