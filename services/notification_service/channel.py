"""Push channel adapters for vendor order alerts.

PUSH_BACKEND=webhook (the default) forwards each push to an HTTP gateway
(an FCM relay in production) and refuses to start without PUSH_WEBHOOK_URL.
PUSH_BACKEND=fake keeps pushes in memory for tests and local runs.
"""
from abc import ABC, abstractmethod
from uuid import uuid4

import httpx
import structlog

from shared.config.settings import HTTP_TIMEOUT_SECONDS, PUSH_BACKEND, PUSH_WEBHOOK_URL

logger = structlog.get_logger(__name__)


class PushPort(ABC):
    """Abstract interface for push notification dispatch adapters."""

    @abstractmethod
    async def send(self, device_token: str, title: str, body: str, data: dict | None = None) -> dict:
        """Send a push notification.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...


class FakePushAdapter(PushPort):
    """Push adapter that records notifications in memory for test assertions."""

    def __init__(self, max_recorded: int = 1000):
        self.sent_pushes: list[dict] = []
        self.max_recorded = max_recorded
        self.should_succeed = True
        self.failure_reason = "Push delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Push delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def send(self, device_token: str, title: str, body: str, data: dict | None = None) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"push-{uuid4().hex[:12]}"
        self.sent_pushes.append({
            "message_id": message_id,
            "device_token": device_token,
            "title": title,
            "body": body,
            "data": data,
        })
        if len(self.sent_pushes) > self.max_recorded:
            del self.sent_pushes[0]
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent_pushes.clear()
        self.should_succeed = True
        self.failure_reason = "Push delivery failed"


class WebhookPushAdapter(PushPort):
    def __init__(self, url: str, timeout: float = HTTP_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout

    async def send(self, device_token: str, title: str, body: str, data: dict | None = None) -> dict:
        payload = {"token": device_token, "notification": {"title": title, "body": body}, "data": data or {}}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            return {"message_id": None, "status": "failed", "error": f"Push gateway unreachable: {e}"}
        if resp.is_error:
            return {"message_id": None, "status": "failed", "error": f"Push gateway returned {resp.status_code}"}
        return {"message_id": resp.json().get("name") or f"push-{uuid4().hex[:12]}", "status": "sent"}


_push_channel: PushPort | None = None


def get_push_channel() -> PushPort:
    """Return the configured push adapter (one per process)."""
    global _push_channel
    if _push_channel is None:
        if PUSH_BACKEND == "fake":
            logger.warning("push_backend_fake", detail="vendor alerts are recorded in memory, not delivered")
            _push_channel = FakePushAdapter()
        elif PUSH_BACKEND == "webhook":
            if not PUSH_WEBHOOK_URL:
                raise ValueError("PUSH_WEBHOOK_URL must be set when PUSH_BACKEND=webhook")
            _push_channel = WebhookPushAdapter(PUSH_WEBHOOK_URL)
        else:
            raise ValueError(f"Unknown push backend: {PUSH_BACKEND}")
    return _push_channel


def reset_push_channel():
    """Drop the cached adapter (useful for testing)."""
    global _push_channel
    _push_channel = None
