"""
FastAPI integration for GitHub webhook signature verification.

GitHubWebhookVerifier is a dependency that reads the raw request body and
the delivery headers, verifies X-Hub-Signature-256 against the configured
secret, and hands the endpoint a VerifiedWebhook. It does not route by
event type; endpoints decide what to do with the delivery.

Usage:
    verify_github_webhook = GitHubWebhookVerifier()

    @router.post("/webhook/github")
    async def github_webhook(
        webhook: VerifiedWebhook = Depends(verify_github_webhook),
    ):
        ...
"""

from dataclasses import dataclass
from typing import Union

from fastapi import HTTPException, Request, status

from github_utils.config.settings import get_settings
from github_utils.errors import (
    DecodeError,
    EmptyWebhookSecretError,
    ProtocolMismatchError,
)
from github_utils.models.github import WebhookDelivery
from github_utils.utils.logging import bind_delivery_context, get_logger
from github_utils.utils.webhook import parse_signature, validate_signature

logger = get_logger(__name__)

MAX_WEBHOOK_PAYLOAD_BYTES = 25 * 1024 * 1024  # GitHub caps payloads at 25 MB


@dataclass(frozen=True)
class VerifiedWebhook:
    """A webhook delivery whose signature matched its body."""

    delivery: WebhookDelivery
    body: bytes
    request_id: str


class GitHubWebhookVerifier:
    """
    FastAPI dependency verifying GitHub webhook signatures.

    Args:
        webhook_secret: Shared secret. If None, read from settings on
            every request; a placeholder value counts as not configured.
        max_payload_bytes: Requests with a larger body are rejected with 413.
    """

    def __init__(
        self,
        webhook_secret: Union[bytes, str, None] = None,
        max_payload_bytes: int = MAX_WEBHOOK_PAYLOAD_BYTES,
    ):
        self._webhook_secret = webhook_secret
        self._max_payload_bytes = max_payload_bytes

    def _get_secret(self) -> Union[bytes, str, None]:
        if self._webhook_secret is not None:
            return self._webhook_secret
        settings = get_settings()
        if not settings.has_webhook_secret:
            return None
        return settings.github_webhook_secret

    async def __call__(self, request: Request) -> VerifiedWebhook:
        delivery = WebhookDelivery.from_headers(request.headers)
        request_id = bind_delivery_context(
            request_id=request.headers.get("X-Request-ID"),
            delivery_id=delivery.delivery,
            github_event=delivery.event,
        )

        raw_body = await request.body()
        if len(raw_body) > self._max_payload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Webhook payload exceeds maximum allowed size",
            )

        if not delivery.signature_256:
            logger.warning("webhook_signature_missing")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing webhook signature header",
            )

        try:
            signature = parse_signature(delivery.signature_256)
        except (ProtocolMismatchError, DecodeError) as e:
            logger.warning("webhook_signature_malformed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Malformed webhook signature header",
            ) from e

        try:
            matched = validate_signature(raw_body, self._get_secret(), signature)
        except EmptyWebhookSecretError as e:
            logger.error("webhook_secret_not_configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Webhook secret not configured on server",
            ) from e

        if not matched:
            logger.warning("webhook_signature_mismatch", body_size=len(raw_body))
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid webhook signature",
            )

        logger.info("webhook_signature_verified", body_size=len(raw_body))
        return VerifiedWebhook(delivery=delivery, body=raw_body, request_id=request_id)
