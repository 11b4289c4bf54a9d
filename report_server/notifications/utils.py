"""
Fire-and-forget chat webhook notifications.

notify() is scheduled as a background task after the response is built. It makes
one POST attempt and logs any failure; it never raises into the caller.
"""

import logging
import socket
from enum import Enum
from typing import Optional

import httpx

from report_server.config import Settings, get_settings
from report_server.errors import NotificationError

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    reports = "reports"
    actions = "actions"


def webhook_url(channel: Channel, settings: Settings) -> str:
    if channel is Channel.reports:
        return settings.reports_webhook
    return settings.actions_webhook


# ────────────────────────────────
# Message text
# ────────────────────────────────
def report_submitted_message(pending_count: int, dashboard_url: str) -> str:
    return (
        f"**New Report**\n\n"
        f"Total pending reports: **{pending_count}**\n\n"
        f"Check reports at: {dashboard_url}"
    )


def report_actioned_message(report, profile_url_base: str) -> str:
    """Decision summary for the actions channel; approval and denial get distinct headings."""
    heading = "Report Approved" if report.status.value == "approved" else "Report Denied"
    outcome = "ban-list sync requested" if report.status.value == "approved" else "no ban-list change"
    return (
        f"**{heading}** ({outcome})\n\n"
        f"**Body Text: **\"`{report.context}`\"\n"
        f"**Reason: **\"`{report.reason}`\"\n\n"
        f"**`Target  : `**[{report.target}](<{profile_url_base}{report.target}>)\n"
        f"**`Reporter: `**[{report.reporter}](<{profile_url_base}{report.reporter}>)\n"
        f"**`Report  : `**{report.id}"
    )


# ────────────────────────────────
# Delivery
# ────────────────────────────────
def classify_failure(error: Exception) -> str:
    """Short diagnostic label for a failed webhook delivery."""
    if isinstance(error, NotificationError):
        return "Webhook returned an error response"
    if isinstance(error, httpx.TimeoutException):
        return "Request timed out"
    if isinstance(error, httpx.ConnectError):
        cause = error.__cause__ or error.__context__
        if isinstance(cause, socket.gaierror) or "name or service not known" in str(error).lower():
            return "Network error - DNS resolution failed"
        return "Connection refused by webhook host"
    if isinstance(error, httpx.InvalidURL):
        return "Invalid webhook URL"
    return "Transport error"


def fire_webhook(content: str, url: str, timeout: float = 10.0) -> None:
    """POST {"content": content} to url. Raises NotificationError on a non-2xx answer."""
    response = httpx.post(url, json={"content": content}, timeout=timeout)
    if not response.is_success:
        raise NotificationError(f"HTTP {response.status_code}: {response.text}")


def notify(text: str, channel: Channel, settings: Optional[Settings] = None) -> None:
    """Deliver text to the channel's webhook, at most once. Failures are logged, never raised."""
    settings = settings or get_settings()
    url = webhook_url(channel, settings)
    if not url:
        logger.debug("No webhook configured for %s channel; skipping", channel.value)
        return

    try:
        fire_webhook(text, url, timeout=settings.webhook_timeout_seconds)
    except (NotificationError, httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error("[WEBHOOK] %s channel delivery failed: %s (%s)", channel.value, classify_failure(e), e)
