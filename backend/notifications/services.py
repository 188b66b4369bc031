from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings

from .models import Notification

logger = logging.getLogger(__name__)


def notify(*, user, type: str, title: str, body: str = "", reference_id: str = "") -> Notification:
    return Notification.objects.create(
        user=user,
        type=type,
        title=title,
        body=body,
        reference_id=str(reference_id or ""),
    )


def send_push(*, token: str, title: str, body: str, data: dict[str, Any] | None = None) -> dict | None:
    """
    Deliver a single message through the Expo push service.

    Returns the decoded Expo response, or None when delivery failed. Push is
    best effort: callers never depend on it succeeding.
    """

    message = {
        "to": token,
        "title": title,
        "body": body,
        "data": data or {},
        "sound": "default",
        "priority": "high",
    }
    try:
        response = requests.post(
            settings.EXPO_PUSH_URL,
            json=message,
            timeout=settings.EXPO_PUSH_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Expo push delivery failed: %s", exc)
        return None


def push_notification(notification: Notification) -> dict | None:
    token = notification.user.push_token
    if not token:
        logger.info("No push token for user %s; skipping %s push.", notification.user_id, notification.type)
        return None
    return send_push(
        token=token,
        title=notification.title,
        body=notification.body,
        data={"type": notification.type, "gameId": notification.reference_id},
    )
