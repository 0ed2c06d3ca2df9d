"""
Webhook delivery of ledger events.

Posts each committed event as JSON to an auditor endpoint, optionally
signed with an Ed25519 key so the receiver can verify its origin.
"""

from __future__ import annotations

import base64
import json
import logging

import httpx
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from custodia.core.events import LedgerEvent
from custodia.core.exceptions import ConfigurationError, NotificationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-custodia-signature"


def encode_event(event: LedgerEvent) -> bytes:
    """Canonical JSON body for an event (sorted keys, no whitespace)."""
    return json.dumps(event.to_dict(), sort_keys=True, separators=(",", ":")).encode("utf-8")


def load_signing_key(key: str | Ed25519PrivateKey) -> Ed25519PrivateKey:
    """
    Load an Ed25519 private key.

    Args:
        key: Key object, or a hex-encoded 32-byte seed

    Raises:
        ConfigurationError: If the key cannot be parsed
    """
    if isinstance(key, Ed25519PrivateKey):
        return key
    try:
        return Ed25519PrivateKey.from_private_bytes(bytes.fromhex(key))
    except ValueError as e:
        raise ConfigurationError(f"Invalid webhook signing key: {e}") from e


class WebhookNotifier:
    """
    EventBus subscriber that POSTs events to a URL.

    Example:
        >>> notifier = WebhookNotifier("https://audit.example.com/hooks", signing_key=seed_hex)
        >>> bus.subscribe(notifier)
    """

    def __init__(
        self,
        url: str,
        signing_key: str | Ed25519PrivateKey | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize notifier.

        Args:
            url: Endpoint receiving events
            signing_key: Optional Ed25519 key (object or hex seed) for signing bodies
            timeout: Request timeout in seconds
            client: Optional shared httpx client; one is created per request otherwise
        """
        self.url = url
        self._signing_key = load_signing_key(signing_key) if signing_key is not None else None
        self._timeout = timeout
        self._client = client

    def sign(self, body: bytes) -> str | None:
        """Base64 Ed25519 signature of body, or None when unsigned."""
        if self._signing_key is None:
            return None
        return base64.b64encode(self._signing_key.sign(body)).decode("utf-8")

    async def __call__(self, event: LedgerEvent) -> None:
        await self.send(event)

    async def send(self, event: LedgerEvent) -> None:
        """
        Deliver one event.

        Raises:
            NotificationError: If the request fails or returns a non-2xx status
        """
        body = encode_event(event)
        headers = {"content-type": "application/json"}
        signature = self.sign(body)
        if signature:
            headers[SIGNATURE_HEADER] = signature

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.url, content=body, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook delivery failed: {e}", url=self.url) from e

        if not response.is_success:
            raise NotificationError(
                f"Webhook endpoint returned {response.status_code}",
                url=self.url,
                status_code=response.status_code,
            )

        logger.debug(f"Delivered {event.type.value} #{event.index} to {self.url}")
