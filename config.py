import os
import sys

from dotenv import load_dotenv

from enums.order_store_backend import OrderStoreBackend
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=test before import
load_dotenv(".env", override=False)


def _csv_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [value.strip() for value in raw.split(",") if value.strip()]


# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Order store backend: in-memory store is single-process only, so prod defaults to the database
try:
    _default_store = OrderStoreBackend.DATABASE if RUNTIME_ENVIRONMENT == RuntimeEnvironment.PROD else OrderStoreBackend.MEMORY
    ORDER_STORE = OrderStoreBackend(os.environ.get("ORDER_STORE", _default_store.value))
except ValueError as e:
    valid_values = [backend.value for backend in OrderStoreBackend]
    print(f"\n ERROR: Invalid ORDER_STORE configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('ORDER_STORE', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Web server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000
SITE_URL = os.environ.get("SITE_URL", "http://localhost:3000").rstrip("/")
CORS_ALLOWED_ORIGINS = _csv_list("CORS_ALLOWED_ORIGINS")

# Database
DB_NAME = os.environ.get("DB_NAME", "storefront.db")
DB_URL = os.environ.get("DB_URL", f"sqlite+aiosqlite:///data/{DB_NAME}")

# Stripe
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
STRIPE_API_URL = os.environ.get("STRIPE_API_URL", "https://api.stripe.com/v1")
STRIPE_WEBHOOK_TOLERANCE_SECONDS = int(os.environ.get("STRIPE_WEBHOOK_TOLERANCE_SECONDS", "300"))  # Replay window

# Email (Resend)
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
RESEND_API_URL = os.environ.get("RESEND_API_URL", "https://api.resend.com")
EMAIL_FROM = os.environ.get("EMAIL_FROM", "Force Dowels <orders@forcedowels.com>")
# Recipients of distributor applications (accept/decline links)
BUSINESS_EMAIL_LIST = _csv_list("BUSINESS_EMAIL_LIST") or ["info@forcedowels.com"]
# Recipients of new order notifications
ADMIN_EMAIL_LIST = _csv_list("ADMIN_EMAIL_LIST") or ["info@forcedowels.com"]

# Session authentication (signed X-Session-Data header issued by the auth provider bridge)
AUTH_SESSION_SECRET = os.environ.get("AUTH_SESSION_SECRET", "")
AUTH_MAX_AGE_SECONDS = int(os.environ.get("AUTH_MAX_AGE_SECONDS", "86400"))  # Default: 24h

# Admin maintenance endpoints
ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN", "")

# UPS (parcel rates)
UPS_BASE_URL = os.environ.get("UPS_BASE_URL", "https://onlinetools.ups.com")
UPS_CLIENT_ID = os.environ.get("UPS_CLIENT_ID", "")
UPS_CLIENT_SECRET = os.environ.get("UPS_CLIENT_SECRET", "")
UPS_ACCOUNT_NUMBER = os.environ.get("UPS_ACCOUNT_NUMBER", "")

# TQL (LTL freight quotes)
TQL_BASE_URL = os.environ.get("TQL_BASE_URL", "https://public.api.tql.com")
TQL_CLIENT_ID = os.environ.get("TQL_CLIENT_ID", "")
TQL_CLIENT_SECRET = os.environ.get("TQL_CLIENT_SECRET", "")
TQL_USERNAME = os.environ.get("TQL_USERNAME", "")
TQL_PASSWORD = os.environ.get("TQL_PASSWORD", "")
TQL_SUBSCRIPTION_KEY = os.environ.get("TQL_SUBSCRIPTION_KEY", "")

# ZIP code -> coordinates lookup for distributor search
ZIP_LOOKUP_URL = os.environ.get("ZIP_LOOKUP_URL", "http://api.zippopotam.us/us")

# Outbound HTTP
HTTP_TIMEOUT_SECONDS = int(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_DIR = os.environ.get("LOG_DIR", "logs")
# Daily log files kept (dev: 30, otherwise 5)
_default_log_retention = "30" if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV else "5"
LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", _default_log_retention))
