"""Best-effort outbound webhooks.

Nothing here raises: a failed delivery is logged and reported in the returned
dict so callers running as background tasks never break the request that
scheduled them.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from acrecap.core.settings import Settings

logger = logging.getLogger(__name__)


async def post_json(
    url: str | None,
    payload: dict[str, Any],
    *,
    purpose: str,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    if not url:
        logger.info("Skipping %s webhook: no URL configured", purpose)
        return {"ok": False, "skipped": True}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("%s webhook failed: %s", purpose, exc)
        return {"ok": False, "error": str(exc)}

    if response.is_error:
        logger.warning("%s webhook returned status %s", purpose, response.status_code)
    return {"ok": response.is_success, "status_code": response.status_code}


async def export_submission_row(
    row: dict[str, Any],
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    return await post_json(
        settings.sheets_webhook_url,
        row,
        purpose="sheets_export",
        timeout=settings.webhook_timeout_seconds,
        transport=transport,
    )


async def notify_admins_new_submission(
    row: dict[str, Any],
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    return await post_json(
        settings.admin_notification_webhook_url,
        {"type": "new_submission", "submission": row},
        purpose="admin_notification",
        timeout=settings.webhook_timeout_seconds,
        transport=transport,
    )
