from django.conf import settings
from django.db import models
from django.utils import timezone


class Notification(models.Model):
    BOOKING_CONFIRMED = "booking_confirmed"
    WAITLIST_PROMOTED = "waitlist_promoted"
    PAYMENT_RECEIVED = "payment_received"
    TYPES = [
        (BOOKING_CONFIRMED, "Booking confirmed"),
        (WAITLIST_PROMOTED, "Promoted from waitlist"),
        (PAYMENT_RECEIVED, "Payment received"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=40, choices=TYPES)
    title = models.CharField(max_length=200)
    body = models.TextField(blank=True)
    reference_id = models.CharField(max_length=64, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    email_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.type} for {self.user}"

    def mark_read(self):
        if not self.read_at:
            self.read_at = timezone.now()
            self.save(update_fields=["read_at"])
