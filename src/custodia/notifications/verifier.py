"""
Notification verification for auditors.

Checks the signature on a delivered webhook body and parses it back into
a LedgerEvent. Does NOT handle HTTP transport.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from custodia.core.events import LedgerEvent
from custodia.core.exceptions import InvalidSignatureError, ValidationError
from custodia.notifications.webhook import SIGNATURE_HEADER


def _load_public_key(key: str) -> Ed25519PublicKey:
    """Parse a PEM, hex or base64 Ed25519 public key."""
    public_key = None

    if "-----BEGIN PUBLIC KEY-----" in key:
        try:
            public_key = serialization.load_pem_public_key(key.encode("utf-8"))
        except Exception as e:
            raise InvalidSignatureError(f"Invalid PEM key: {e}") from e
    else:
        try:
            public_key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(key))
        except ValueError:
            try:
                public_key = Ed25519PublicKey.from_public_bytes(base64.b64decode(key))
            except ValueError:
                public_key = None

    if public_key is None:
        raise InvalidSignatureError(
            "Could not parse verification key (expected PEM, Hex, or Base64)"
        )
    if not isinstance(public_key, Ed25519PublicKey):
        raise InvalidSignatureError("Key is not an Ed25519PublicKey")
    return public_key


class NotificationVerifier:
    """
    Verifies and parses webhook bodies produced by WebhookNotifier.
    """

    def __init__(self, verification_key: str | None = None) -> None:
        """
        Initialize verifier.

        Args:
            verification_key: Public key (PEM, hex or base64). Without one,
                signatures are not checked.
        """
        self._public_key = _load_public_key(verification_key) if verification_key else None

    def verify_signature(self, payload: str | bytes, headers: Mapping[str, str]) -> bool:
        """
        Verify the signature header against payload.

        Returns:
            True if valid (or if no key is configured)

        Raises:
            InvalidSignatureError: If the header is missing, malformed or does not match
        """
        if self._public_key is None:
            return True

        signature = headers.get(SIGNATURE_HEADER)
        if not signature:
            raise InvalidSignatureError(f"Missing {SIGNATURE_HEADER} header")

        payload_bytes = payload.encode("utf-8") if isinstance(payload, str) else payload
        try:
            signature_bytes = base64.b64decode(signature, validate=True)
        except ValueError:
            raise InvalidSignatureError("Invalid base64 signature") from None

        try:
            self._public_key.verify(signature_bytes, payload_bytes)
        except InvalidSignature:
            raise InvalidSignatureError("Signature mismatch") from None
        return True

    def handle(
        self, payload: str | bytes | dict[str, Any], headers: Mapping[str, str]
    ) -> LedgerEvent:
        """
        Verify and parse a webhook body.

        A parsed dict is only accepted when no verification key is configured.

        Raises:
            InvalidSignatureError: If signature invalid, or a parsed dict is
                passed while a verification key is configured
            ValidationError: If payload malformed
        """
        if isinstance(payload, (str, bytes)):
            self.verify_signature(payload, headers)
            try:
                data = json.loads(payload)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON payload: {e}") from e
        elif self._public_key is not None:
            raise InvalidSignatureError("Signed events must be verified against the raw body")
        else:
            data = payload

        try:
            return LedgerEvent.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            raise ValidationError(f"Malformed ledger event: {e}") from e
