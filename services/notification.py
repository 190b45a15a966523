import logging
from datetime import datetime

import config
from clients.resend_client import ResendClient
from models.distribution_request import DistributionRequestDTO
from models.order import OrderDTO
from services.pricing import format_currency, format_number
from utils.html_escape import safe_html, safe_url

logger = logging.getLogger(__name__)

PHONE_DISPLAY = "(480) 581-7145"


def _layout(title: str, body: str) -> str:
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #1f2937;\">"
        f"<h1 style=\"color: #b45309; font-size: 22px;\">{title}</h1>"
        f"{body}"
        "<hr style=\"border: none; border-top: 1px solid #e5e7eb; margin: 24px 0;\">"
        f"<p style=\"font-size: 12px; color: #6b7280;\">Force Dowel Company &middot; 4455 E Nunneley Rd, Ste 103, "
        f"Gilbert, AZ 85296 &middot; {PHONE_DISPLAY}</p>"
        "</div>"
    )


def _address_block(info: dict | None) -> str:
    if not info:
        return "<p>-</p>"
    lines = [
        info.get("name"),
        info.get("address"),
        " ".join(part for part in [info.get("city"), info.get("state"), info.get("zip")] if part),
        info.get("country"),
    ]
    return "<p>" + "<br>".join(safe_html(line) for line in lines if line) + "</p>"


def _items_table(items: list[OrderDTO]) -> str:
    rows = "".join(
        "<tr>"
        f"<td style=\"padding: 6px 0;\">{safe_html(format_number(item.quantity))} Force Dowels</td>"
        f"<td style=\"padding: 6px 0;\">{safe_html(item.tier)}</td>"
        f"<td style=\"padding: 6px 0; text-align: right;\">{format_currency(item.total_price or 0)}</td>"
        "</tr>"
        for item in items
    )
    return (
        "<table style=\"width: 100%; border-collapse: collapse;\">"
        "<tr><th style=\"text-align: left;\">Item</th><th style=\"text-align: left;\">Tier</th>"
        "<th style=\"text-align: right;\">Total</th></tr>"
        f"{rows}</table>"
    )


class NotificationService:
    """
    Transactional email.

    Every method raises EmailDeliveryException on failure; callers decide
    whether a failure is fatal (it never is after a committed state change).
    """

    @staticmethod
    async def order_confirmation(summary: OrderDTO, items: list[OrderDTO]) -> None:
        if not summary.user_email:
            logger.warning(f"Order {summary.id} has no customer email, skipping confirmation")
            return
        shipping_info = summary.shipping_info or {}
        body = (
            f"<p>Hi {safe_html(summary.user_name or 'there')},</p>"
            f"<p>Thank you for your order placed on {datetime.now().strftime('%B %d, %Y')}. "
            "We are preparing it for shipment.</p>"
            f"{_items_table(items)}"
            f"<p>Shipping ({safe_html(shipping_info.get('shipping_option', 'standard'))}): "
            f"{format_currency(float(shipping_info.get('shipping_cost', 0) or 0))}</p>"
            f"<p><strong>Order total: {format_currency(summary.total_price or 0)}</strong></p>"
            "<h3>Shipping to</h3>"
            f"{_address_block(summary.shipping_info)}"
            f"<p>Questions? Reply to this email or call {PHONE_DISPLAY}.</p>"
        )
        await ResendClient.send_email(
            to=[summary.user_email],
            subject="Your Force Dowels Order Confirmation",
            html=_layout("Order Confirmation", body),
        )

    @staticmethod
    async def admin_order_notification(summary: OrderDTO, items: list[OrderDTO]) -> None:
        body = (
            f"<p>New paid order from <strong>{safe_html(summary.user_name or 'Guest')}</strong> "
            f"({safe_html(summary.user_email or 'no email')}).</p>"
            f"<p>Stripe session: {safe_html(summary.stripe_session_id)}</p>"
            f"{_items_table(items)}"
            f"<p><strong>Order total: {format_currency(summary.total_price or 0)}</strong></p>"
            "<h3>Ship to</h3>"
            f"{_address_block(summary.shipping_info)}"
            "<h3>Bill to</h3>"
            f"{_address_block(summary.billing_info)}"
        )
        await ResendClient.send_email(
            to=config.ADMIN_EMAIL_LIST,
            subject=f"New Force Dowels Order - {format_currency(summary.total_price or 0)}",
            html=_layout("New Order", body),
        )

    @staticmethod
    async def distributor_application(request: DistributionRequestDTO, accept_url: str, decline_url: str) -> None:
        fields = [
            ("Contact", request.full_name),
            ("Business", request.business_name),
            ("Email", request.email_address),
            ("Phone", request.phone_number),
            ("Address", request.full_address),
            ("Website", request.website),
            ("Business type", request.business_type_other or request.business_type),
            ("Years in business", request.years_in_business),
            ("Territory", request.territory),
            ("Monthly volume", request.purchase_volume),
            ("Sells similar products", request.sells_similar_products),
            ("Similar products", request.similar_products_details),
            ("Heard about us", request.hear_about_us_other or request.hear_about_us),
        ]
        rows = "".join(
            f"<tr><td style=\"padding: 4px 12px 4px 0;\"><strong>{label}</strong></td>"
            f"<td>{safe_html(value)}</td></tr>"
            for label, value in fields if value not in (None, "")
        )
        body = (
            f"<table>{rows}</table>"
            "<p style=\"margin-top: 24px;\">"
            f"<a href=\"{safe_url(accept_url)}\" style=\"background: #16a34a; color: #fff; padding: 10px 18px; "
            "text-decoration: none; border-radius: 4px;\">Accept</a> "
            f"<a href=\"{safe_url(decline_url)}\" style=\"background: #dc2626; color: #fff; padding: 10px 18px; "
            "text-decoration: none; border-radius: 4px;\">Decline</a>"
            "</p>"
        )
        await ResendClient.send_email(
            to=config.BUSINESS_EMAIL_LIST,
            subject=f"New Distributor Application - {request.business_name}",
            html=_layout("New Distributor Application", body),
            reply_to=request.email_address,
        )

    @staticmethod
    async def application_confirmation(request: DistributionRequestDTO) -> None:
        body = (
            f"<p>Hi {safe_html(request.full_name)},</p>"
            f"<p>Thank you for applying to become a Force Dowels distributor on behalf of "
            f"<strong>{safe_html(request.business_name)}</strong>. Our team reviews every application "
            "and will get back to you shortly.</p>"
        )
        await ResendClient.send_email(
            to=[request.email_address],
            subject="Thank you for your Force Dowels Distributor Application",
            html=_layout("Application Received", body),
        )

    @staticmethod
    async def distributor_accepted(request: DistributionRequestDTO) -> None:
        body = (
            f"<p>Hi {safe_html(request.full_name)},</p>"
            f"<p>Congratulations! <strong>{safe_html(request.business_name)}</strong> has been approved as a "
            "Force Dowels distributor.</p>"
            f"<p>Territory: {safe_html(request.territory)}</p>"
            f"<p>You will now appear on our distributor map. Call {PHONE_DISPLAY} to set up your first order.</p>"
        )
        await ResendClient.send_email(
            to=[request.email_address],
            subject="Congratulations! Your Force Dowels Distributor Application Approved",
            html=_layout("Application Approved", body),
        )

    @staticmethod
    async def distributor_declined(request: DistributionRequestDTO) -> None:
        body = (
            f"<p>Hi {safe_html(request.full_name)},</p>"
            f"<p>Thank you for your interest in distributing Force Dowels through "
            f"<strong>{safe_html(request.business_name)}</strong>. We are unable to move forward with your "
            "application at this time.</p>"
            "<p>You can still purchase Force Dowels directly from our online store.</p>"
        )
        await ResendClient.send_email(
            to=[request.email_address],
            subject="Thank you for your Force Dowels Distributor Application",
            html=_layout("Application Update", body),
        )
