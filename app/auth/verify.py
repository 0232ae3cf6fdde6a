"""
verify.py
---------
Purpose:
    Shared-secret verification for inbound webhooks.

Notes:
    - Callers send the secret in the `x-webhook-secret` header.
    - Comparison is constant-time.
    - Provides `require_webhook_secret` for protected routes.
"""

import hmac

from fastapi import Header, HTTPException, status

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

WEBHOOK_SECRET_HEADER = "x-webhook-secret"


def verify_webhook_secret(provided: str | None) -> None:
    expected = settings.EMAIL_SYNC_WEBHOOK_SECRET
    if not expected:
        logger.error("Webhook secret not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        )

    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )


def require_webhook_secret(
    x_webhook_secret: str | None = Header(default=None, alias=WEBHOOK_SECRET_HEADER),
) -> None:
    verify_webhook_secret(x_webhook_secret)
