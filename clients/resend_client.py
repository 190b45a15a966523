import logging

import config
from clients.api_wrapper import ApiWrapper
from exceptions.base import UpstreamServiceException
from exceptions.email import EmailDeliveryException

logger = logging.getLogger(__name__)


class ResendClient:

    @staticmethod
    async def send_email(to: list[str], subject: str, html: str, reply_to: str | None = None) -> str | None:
        """
        Send one email through Resend.

        Returns:
            Resend message id

        Raises:
            EmailDeliveryException: If the API key is missing or Resend rejects the message
        """
        if not config.RESEND_API_KEY:
            raise EmailDeliveryException("RESEND_API_KEY is not configured", recipients=to)

        payload = {
            "from": config.EMAIL_FROM,
            "to": to,
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to
        headers = {
            "Authorization": f"Bearer {config.RESEND_API_KEY}",
            "Content-Type": "application/json",
        }
        try:
            response = await ApiWrapper.fetch_api_request(
                f"{config.RESEND_API_URL}/emails",
                method="POST",
                json=payload,
                headers=headers,
                service="resend"
            )
        except UpstreamServiceException as e:
            raise EmailDeliveryException(e.message, e.status_code, recipients=to) from e
        logger.info(f"Email '{subject}' sent to {len(to)} recipient(s)")
        return response.get("id")
