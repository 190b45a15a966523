import asyncio
import logging
from typing import Any

import aiohttp

import config
from exceptions.base import UpstreamServiceException

logger = logging.getLogger(__name__)


class ApiWrapper:
    """Thin aiohttp wrapper shared by all outbound provider clients."""

    @staticmethod
    async def fetch_api_request(
        url: str,
        method: str = "GET",
        data: Any = None,
        json: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
        service: str = "external",
        auth: aiohttp.BasicAuth | None = None,
    ) -> dict:
        """
        Perform one HTTP request and return the decoded JSON body.

        Args:
            url: Absolute URL
            method: HTTP method
            data: Form body (dict -> application/x-www-form-urlencoded) or raw string
            json: JSON body
            params: Query string parameters
            headers: Extra request headers
            service: Provider name used in errors and logs
            auth: Optional HTTP basic auth

        Raises:
            UpstreamServiceException: On transport errors, timeouts, non-2xx responses
                or a 2xx body that is not JSON
        """
        timeout = aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, data=data, json=json, params=params,
                                           headers=headers, auth=auth) as response:
                    if response.status in [200, 201]:
                        return await response.json(content_type=None)
                    body = await response.text()
                    logger.warning(f"{service} request {method} {url} failed: {response.status} {body[:500]}")
                    raise UpstreamServiceException(
                        service,
                        f"{service} request failed: {response.status} - {body[:500]}",
                        status_code=response.status
                    )
        except aiohttp.ClientError as e:
            logger.error(f"{service} request {method} {url} failed: {e}")
            raise UpstreamServiceException(service, f"{service} request failed: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"{service} request {method} {url} timed out after {config.HTTP_TIMEOUT_SECONDS}s")
            raise UpstreamServiceException(service, f"{service} request timed out") from e
        except ValueError as e:
            # 2xx with a body that is not JSON
            logger.error(f"{service} request {method} {url} returned an unreadable body: {e}")
            raise UpstreamServiceException(service, f"{service} returned an invalid response") from e
