"""Tests for the Twilio REST client, using httpx's mock transport."""

from urllib.parse import parse_qs

import httpx
import pytest

from lead_orchestrator.errors import OutboundDeliveryError
from lead_orchestrator.notifications.outbound import TwilioSender


def _sender(handler, account_sid="AC123"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), auth=(account_sid, "tok"))
    return TwilioSender(account_sid, "tok", "whatsapp:+14155238886", client=client)


class TestTwilioSender:
    @pytest.mark.asyncio
    async def test_posts_form_to_messages_endpoint(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            seen["auth"] = request.headers.get("authorization", "")
            return httpx.Response(201, json={"sid": "SM1"})

        sender = _sender(handler)
        await sender.send("whatsapp:+5493415551234", "hola")
        await sender.aclose()

        assert seen["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert seen["form"] == {
            "From": ["whatsapp:+14155238886"],
            "To": ["whatsapp:+5493415551234"],
            "Body": ["hola"],
        }
        assert seen["auth"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_api_error_raises(self):
        sender = _sender(lambda request: httpx.Response(400, json={"message": "bad To"}))
        with pytest.raises(OutboundDeliveryError, match="400"):
            await sender.send("whatsapp:+1", "hola")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(OutboundDeliveryError, match="request failed"):
            await _sender(handler).send("whatsapp:+1", "hola")

    @pytest.mark.asyncio
    async def test_missing_account_sid(self):
        sender = _sender(lambda request: httpx.Response(201), account_sid="")
        with pytest.raises(OutboundDeliveryError, match="SID"):
            await sender.send("whatsapp:+1", "hola")
