"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional

from enums.order_store_backend import OrderStoreBackend
from enums.runtime_environment import RuntimeEnvironment


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_stripe_secret_key(secret_key: Optional[str]) -> None:
    """
    Validate the Stripe API secret key.

    Raises:
        ConfigValidationError: If key is missing or not a Stripe secret key
    """
    if not secret_key or len(secret_key.strip()) == 0:
        raise ConfigValidationError(
            "STRIPE_SECRET_KEY is required and must not be empty!\n"
            "Get your secret key from the Stripe dashboard (Developers > API keys).\n"
            "Add to .env: STRIPE_SECRET_KEY=sk_live_..."
        )

    if not (secret_key.startswith("sk_") or secret_key.startswith("rk_")):
        raise ConfigValidationError(
            "STRIPE_SECRET_KEY does not look like a Stripe secret key (expected sk_... or rk_...).\n"
            "Publishable keys (pk_...) cannot create checkout sessions."
        )


def validate_webhook_secret(webhook_secret: Optional[str]) -> None:
    """
    Validate Stripe webhook signing secret.

    Args:
        webhook_secret: STRIPE_WEBHOOK_SECRET value

    Raises:
        ConfigValidationError: If secret is missing or malformed
    """
    if not webhook_secret or len(webhook_secret.strip()) == 0:
        raise ConfigValidationError(
            "STRIPE_WEBHOOK_SECRET is required and must not be empty!\n"
            "This secret is used to verify Stripe webhook signatures.\n"
            "Add to .env: STRIPE_WEBHOOK_SECRET=whsec_..."
        )

    if not webhook_secret.startswith("whsec_"):
        raise ConfigValidationError(
            "STRIPE_WEBHOOK_SECRET must start with 'whsec_'.\n"
            "Copy the signing secret from the webhook endpoint settings in Stripe."
        )


def validate_session_secret(session_secret: Optional[str]) -> None:
    """
    Validate the HMAC secret used to verify X-Session-Data headers.

    Raises:
        ConfigValidationError: If secret is missing or too weak
    """
    if not session_secret:
        raise ConfigValidationError(
            "AUTH_SESSION_SECRET is required for session validation!\n"
            "Generate a secure secret with: openssl rand -hex 32\n"
            "Add to .env: AUTH_SESSION_SECRET=<your-generated-secret>"
        )

    if len(session_secret) < 32:
        raise ConfigValidationError(
            f"AUTH_SESSION_SECRET must be at least 32 characters long (currently: {len(session_secret)})\n"
            "Generate a secure secret with: openssl rand -hex 32"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Args:
        value: The config value to check
        name: Name of the config variable
        example: Optional example value to show in error message

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Test mode only needs the session secret; payment and email
    credentials are mocked there.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_session_secret(config_module.AUTH_SESSION_SECRET)

    if config_module.RUNTIME_ENVIRONMENT == RuntimeEnvironment.TEST:
        return

    validate_stripe_secret_key(config_module.STRIPE_SECRET_KEY)
    validate_webhook_secret(config_module.STRIPE_WEBHOOK_SECRET)
    validate_required_config(config_module.RESEND_API_KEY, 'RESEND_API_KEY', 're_...')
    validate_required_config(config_module.SITE_URL, 'SITE_URL', 'https://forcedowels.com')

    if config_module.RUNTIME_ENVIRONMENT == RuntimeEnvironment.PROD:
        if config_module.ORDER_STORE == OrderStoreBackend.MEMORY:
            raise ConfigValidationError(
                "ORDER_STORE=memory is not supported in prod (orders would be lost on restart "
                "and are not shared between workers).\n"
                "Add to .env: ORDER_STORE=database"
            )
        validate_required_config(config_module.ADMIN_API_TOKEN, 'ADMIN_API_TOKEN', '<openssl rand -hex 32>')


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nStartup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
