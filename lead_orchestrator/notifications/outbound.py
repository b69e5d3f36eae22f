"""
Outbound messaging: the carrier client and the sandbox gate in front of it.

``TwilioSender`` only knows how to post a message. ``Messenger`` decides
whether a message may leave the process at all:

- DEV_MODE off: everything is sent.
- DEV_MODE on: operator traffic is always suppressed; replies to the lead
  are suppressed unless REPLY_TO_LEAD_IN_DEV is on.

A suppressed send is logged and reported as ``False``; it never affects
conversation state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from lead_orchestrator.config import TransportConfig, settings
from lead_orchestrator.errors import OutboundDeliveryError

logger = logging.getLogger(__name__)


class OutboundSender(ABC):
    """Delivers one text to one destination."""

    @abstractmethod
    async def send(self, to: str, body: str) -> None:
        """Send or raise OutboundDeliveryError."""
        pass

    async def aclose(self) -> None:
        """Release any underlying client."""


class TwilioSender(OutboundSender):
    """Sends WhatsApp/SMS messages through the Twilio Messages REST API."""

    BASE_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_address: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.account_sid = account_sid
        self.from_address = from_address
        self.url = self.BASE_URL.format(sid=account_sid)
        self._client = client or httpx.AsyncClient(
            timeout=timeout, auth=(account_sid, auth_token)
        )

    async def send(self, to: str, body: str) -> None:
        if not self.account_sid:
            raise OutboundDeliveryError("Twilio account SID is not configured")
        data = {"From": self.from_address, "To": to, "Body": body}
        try:
            response = await self._client.post(self.url, data=data)
        except httpx.HTTPError as exc:
            raise OutboundDeliveryError(f"Twilio request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("Twilio error: %s", response.text)
            raise OutboundDeliveryError(
                f"Twilio API error: {response.status_code} - {response.text}"
            )
        logger.debug("Twilio accepted message to %s (status %s)", to, response.status_code)

    async def aclose(self) -> None:
        await self._client.aclose()


class Messenger:
    """Applies the deployment's sandbox rules to every outbound message."""

    def __init__(self, sender: OutboundSender, transport: Optional[TransportConfig] = None) -> None:
        transport = transport or settings.transport
        self._sender = sender
        self.dev_mode = transport.dev_mode
        self.reply_to_lead_in_dev = transport.reply_to_lead_in_dev
        self.operator_address = transport.handoff_to

    @property
    def lead_replies_enabled(self) -> bool:
        return not self.dev_mode or self.reply_to_lead_in_dev

    @property
    def operator_notifications_enabled(self) -> bool:
        return not self.dev_mode

    async def reply_to_lead(self, to: str, body: str) -> bool:
        """Send a reply to a lead. Returns False when suppressed."""
        if not to:
            return False
        if not self.lead_replies_enabled:
            logger.info("DEV_MODE: outbound suppressed. Would send to %s: %s", to, body)
            return False
        await self._sender.send(to, body)
        return True

    async def notify_operator(self, body: str) -> bool:
        """Send a notice to the operator. Returns False when suppressed.

        Raises:
            OutboundDeliveryError: No operator destination configured, or the
                carrier rejected the message.
        """
        if not self.operator_notifications_enabled:
            logger.info("DEV_MODE: operator notice suppressed: %s", body.split("\n", 1)[0])
            return False
        if not self.operator_address:
            raise OutboundDeliveryError("HANDOFF_TO is not configured")
        await self._sender.send(self.operator_address, body)
        return True

    async def aclose(self) -> None:
        await self._sender.aclose()
