import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .emails import send_notification_email
from .models import Notification
from .services import push_notification

logger = logging.getLogger(__name__)

PUSHED_TYPES = {Notification.WAITLIST_PROMOTED}


@receiver(post_save, sender=Notification)
def handle_notification_post_save(sender, instance, created, **kwargs):
    if not created:
        return
    if instance.type in PUSHED_TYPES:
        push_notification(instance)
    try:
        send_notification_email(instance)
    except OSError as exc:  # SMTPException and socket errors
        logger.warning("Email for notification %s (%s) failed: %s", instance.pk, instance.type, exc)
