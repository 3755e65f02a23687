"""Slack incoming-webhook alert notifier."""

from collections.abc import Mapping
from typing import Any

import httpx

from restopulse.core.retry import with_retry

SEVERITY_COLORS = {
    "critical": "#D92D20",
    "warning": "#F79009",
    "info": "#2E90FA",
}


def build_slack_payload(
    title: str, severity: str, details: Mapping[str, Any]
) -> dict[str, Any]:
    """Build a Slack attachment message for one alert.

    Args:
        title: Attachment title.
        severity: "critical", "warning" or "info"; unknown values use the
            info color.
        details: Rendered as one ``*key*: value`` line per entry.

    Returns:
        JSON-serializable webhook payload.
    """
    text = "\n".join(f"*{key}*: {value}" for key, value in details.items())
    return {
        "attachments": [
            {
                "color": SEVERITY_COLORS.get(severity, SEVERITY_COLORS["info"]),
                "title": title,
                "text": text,
            }
        ]
    }


class SlackWebhookNotifier:
    """AlertNotifierPort implementation posting to a Slack webhook.

    Without a webhook URL every send is a no-op reporting ``sent: False``.

    Args:
        webhook_url: Slack incoming-webhook URL, or None.
        attempts: Delivery attempts per alert.
        base_delay: Retry delay unit in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        webhook_url: str | None,
        attempts: int = 3,
        base_delay: float = 0.2,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.webhook_url = webhook_url
        self.attempts = attempts
        self.base_delay = base_delay
        self._transport = transport
        self._timeout = timeout

    async def send(
        self, title: str, severity: str, details: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Post one alert, retrying failed deliveries.

        Raises:
            httpx.HTTPError: When every attempt failed.
        """
        if not self.webhook_url:
            return {"sent": False, "reason": "SLACK_ALERT_WEBHOOK_URL not configured"}

        payload = build_slack_payload(title, severity, details)
        webhook_url = self.webhook_url

        async with httpx.AsyncClient(
            transport=self._transport, timeout=self._timeout
        ) as client:

            async def post() -> None:
                response = await client.post(webhook_url, json=payload)
                response.raise_for_status()

            await with_retry(post, attempts=self.attempts, base_delay=self.base_delay)

        return {"sent": True}
