"""Tests for the event bus, webhook delivery and signature verification."""

import base64
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from custodia.core.events import EventType, LedgerEvent
from custodia.core.exceptions import (
    ConfigurationError,
    InvalidSignatureError,
    NotificationError,
    TransferFailedError,
    ValidationError,
)
from custodia.notifications import (
    SIGNATURE_HEADER,
    EventBus,
    NotificationVerifier,
    WebhookNotifier,
    encode_event,
)
from tests.conftest import ALICE, BOB, OWNER

HOOK_URL = "https://audit.example.com/hooks"


@pytest.fixture
def event():
    return LedgerEvent(
        type=EventType.DEPOSITED, participant=ALICE, amount=100, index=0, timestamp=1_700_000_000
    )


@pytest.fixture
def key_pair():
    private_key = ed25519.Ed25519PrivateKey.generate()
    return private_key, private_key.public_key()


def raw_public_hex(public_key) -> str:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw
    ).hex()


def raw_private_hex(private_key) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    ).hex()


class TestEventBus:
    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self, event):
        bus = EventBus()
        seen = []

        async def async_handler(e):
            seen.append(("async", e.index))

        bus.subscribe(lambda e: seen.append(("sync", e.index)))
        bus.subscribe(async_handler)

        await bus.publish([event])

        assert seen == [("sync", 0), ("async", 0)]
        assert bus.subscriber_count == 2

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_delivery(self, event):
        bus = EventBus()
        seen = []

        def broken(e):
            raise RuntimeError("observer down")

        bus.subscribe(broken)
        bus.subscribe(seen.append)

        await bus.publish([event])

        assert seen == [event]

    def test_unsubscribe(self):
        bus = EventBus()
        handler = AsyncMock()
        bus.subscribe(handler)

        assert bus.unsubscribe(handler) is True
        assert bus.unsubscribe(handler) is False
        assert bus.subscriber_count == 0


class TestWebhookNotifier:
    @pytest.mark.asyncio
    async def test_posts_signed_event(self, event, key_pair):
        private_key, public_key = key_pair
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        notifier = WebhookNotifier(HOOK_URL, signing_key=raw_private_hex(private_key), client=client)

        await notifier(event)
        await client.aclose()

        assert len(requests) == 1
        request = requests[0]
        assert str(request.url) == HOOK_URL
        assert json.loads(request.content)["type"] == "Deposited"

        verifier = NotificationVerifier(raw_public_hex(public_key))
        parsed = verifier.handle(request.content, request.headers)
        assert parsed == event

    @pytest.mark.asyncio
    async def test_unsigned_when_no_key(self, event):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        await WebhookNotifier(HOOK_URL, client=client).send(event)
        await client.aclose()

        assert SIGNATURE_HEADER not in requests[0].headers

    @pytest.mark.asyncio
    async def test_error_status_raises(self, event):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        notifier = WebhookNotifier(HOOK_URL, client=client)

        with pytest.raises(NotificationError) as exc_info:
            await notifier.send(event)
        await client.aclose()

        assert exc_info.value.status_code == 503
        assert exc_info.value.is_server_error()

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, event):
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
        mock_client.__aenter__.return_value = mock_client

        with patch("custodia.notifications.webhook.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(NotificationError, match="Connection refused"):
                await WebhookNotifier(HOOK_URL).send(event)

    def test_invalid_signing_key(self):
        with pytest.raises(ConfigurationError):
            WebhookNotifier(HOOK_URL, signing_key="not-hex")

    @pytest.mark.asyncio
    async def test_delivers_committed_calls_only(self, controller, bus, host):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        bus.subscribe(WebhookNotifier(HOOK_URL, client=client))

        await controller.deposit(ALICE, 100)
        host.reject_transfers_to(BOB)
        with pytest.raises(TransferFailedError):
            await controller.withdraw_to(OWNER, BOB, 10)
        await controller.withdraw(OWNER, 10)
        await client.aclose()

        assert [(r["type"], r["index"]) for r in requests] == [("Deposited", 0), ("Withdrawn", 1)]


class TestNotificationVerifier:
    def sign(self, private_key, payload: bytes) -> str:
        return base64.b64encode(private_key.sign(payload)).decode("utf-8")

    def test_valid_signature(self, event, key_pair):
        private_key, public_key = key_pair
        body = encode_event(event)
        verifier = NotificationVerifier(raw_public_hex(public_key))

        assert verifier.verify_signature(body, {SIGNATURE_HEADER: self.sign(private_key, body)})

    def test_pem_key(self, event, key_pair):
        private_key, public_key = key_pair
        pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("utf-8")
        body = encode_event(event)

        verifier = NotificationVerifier(pem)
        assert verifier.verify_signature(body, {SIGNATURE_HEADER: self.sign(private_key, body)})

    def test_base64_key(self, event, key_pair):
        private_key, public_key = key_pair
        raw = bytes.fromhex(raw_public_hex(public_key))
        body = encode_event(event)

        verifier = NotificationVerifier(base64.b64encode(raw).decode("utf-8"))
        assert verifier.verify_signature(body, {SIGNATURE_HEADER: self.sign(private_key, body)})

    def test_tampered_payload(self, event, key_pair):
        private_key, public_key = key_pair
        body = encode_event(event)
        signature = self.sign(private_key, body)
        tampered = body.replace(b'"100"', b'"999"')

        verifier = NotificationVerifier(raw_public_hex(public_key))
        with pytest.raises(InvalidSignatureError, match="Signature mismatch"):
            verifier.verify_signature(tampered, {SIGNATURE_HEADER: signature})

    def test_missing_header(self, event, key_pair):
        _, public_key = key_pair
        verifier = NotificationVerifier(raw_public_hex(public_key))

        with pytest.raises(InvalidSignatureError, match="Missing"):
            verifier.verify_signature(encode_event(event), {})

    def test_bad_base64_signature(self, event, key_pair):
        _, public_key = key_pair
        verifier = NotificationVerifier(raw_public_hex(public_key))

        with pytest.raises(InvalidSignatureError, match="Invalid base64"):
            verifier.verify_signature(encode_event(event), {SIGNATURE_HEADER: "***"})

    def test_unparseable_key(self):
        with pytest.raises(InvalidSignatureError, match="Could not parse"):
            NotificationVerifier("definitely not a key")

    def test_handle_without_key(self, event):
        verifier = NotificationVerifier()
        assert verifier.handle(event.to_dict(), {}) == event

    def test_handle_malformed(self):
        verifier = NotificationVerifier()
        with pytest.raises(ValidationError, match="Invalid JSON"):
            verifier.handle("{not json", {})
        with pytest.raises(ValidationError, match="Malformed"):
            verifier.handle({"type": "Refunded"}, {})

    def test_parsed_event_rejected_when_key_configured(self, key_pair):
        _, public_key = key_pair
        verifier = NotificationVerifier(raw_public_hex(public_key))
        forged = {
            "type": "Withdrawn",
            "participant": "0xevil",
            "amount": "999",
            "index": 7,
            "timestamp": 1_700_000_000,
        }

        with pytest.raises(InvalidSignatureError, match="raw body"):
            verifier.handle(forged, {})

    def test_handle_signed_body(self, event, key_pair):
        private_key, public_key = key_pair
        body = encode_event(event)
        verifier = NotificationVerifier(raw_public_hex(public_key))

        assert verifier.handle(body, {SIGNATURE_HEADER: self.sign(private_key, body)}) == event
