"""
Notifications - delivery of Deposited/Withdrawn events to external auditors.
"""

from custodia.notifications.bus import EventBus, EventHandler
from custodia.notifications.verifier import NotificationVerifier
from custodia.notifications.webhook import (
    SIGNATURE_HEADER,
    WebhookNotifier,
    encode_event,
    load_signing_key,
)

__all__ = [
    "EventBus",
    "EventHandler",
    "NotificationVerifier",
    "WebhookNotifier",
    "SIGNATURE_HEADER",
    "encode_event",
    "load_signing_key",
]
