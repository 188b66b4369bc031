from __future__ import annotations

from django.conf import settings
from django.core.mail import send_mail

from .models import Notification

EMAIL_TYPES = {
    Notification.WAITLIST_PROMOTED,
    Notification.PAYMENT_RECEIVED,
}


def send_notification_email(notification: Notification) -> bool:
    """Mirror an email-worthy notification to the player's inbox."""

    if notification.type not in EMAIL_TYPES or notification.email_sent:
        return False
    user = notification.user
    if not user.email:
        return False

    body_lines = [
        f"Hi {user.label},",
        "",
        notification.body or notification.title,
        "",
        "See you on the court!",
        "",
        "The Book a Dink Team",
    ]
    send_mail(
        notification.title,
        "\n".join(body_lines),
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
        fail_silently=False,
    )
    notification.email_sent = True
    notification.save(update_fields=["email_sent"])
    return True
