import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from clients.api_wrapper import ApiWrapper
from exceptions.base import UpstreamServiceException


def responding(status: int, json_side_effect=None, text: str = "") -> MagicMock:
    response = MagicMock(status=status)
    response.json = AsyncMock(side_effect=json_side_effect)
    response.text = AsyncMock(return_value=text)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestFetchApiRequest:

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_error(self):
        with patch.object(aiohttp.ClientSession, "request", MagicMock(side_effect=asyncio.TimeoutError)):
            with pytest.raises(UpstreamServiceException) as exc_info:
                await ApiWrapper.fetch_api_request("https://api.resend.com/emails", method="POST", service="resend")

        assert exc_info.value.message == "resend request timed out"

    @pytest.mark.asyncio
    async def test_non_json_body_is_upstream_error(self):
        request = responding(200, json_side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))

        with patch.object(aiohttp.ClientSession, "request", request):
            with pytest.raises(UpstreamServiceException) as exc_info:
                await ApiWrapper.fetch_api_request("https://api.zippopotam.us/us/85004", service="zippopotam")

        assert exc_info.value.message == "zippopotam returned an invalid response"

    @pytest.mark.asyncio
    async def test_error_status_keeps_code(self):
        with patch.object(aiohttp.ClientSession, "request", responding(404, text="{}")):
            with pytest.raises(UpstreamServiceException) as exc_info:
                await ApiWrapper.fetch_api_request("https://api.zippopotam.us/us/00000", service="zippopotam")

        assert exc_info.value.status_code == 404
