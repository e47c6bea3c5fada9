"""Outbound webhook notifier."""

import httpx

from prlink.providers.base import Notifier


class WebhookNotifier(Notifier):
    def notify(self, url: str, payload: dict) -> None:
        # Fire-and-forget: only the status matters, the response body is ignored.
        response = httpx.post(url, json=payload, timeout=30)
        response.raise_for_status()
