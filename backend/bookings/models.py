import uuid

from django.conf import settings
from django.db import models


class Booking(models.Model):
    """A player's reservation for a game slot."""

    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"
    STATUSES = [
        (CONFIRMED, "Confirmed"),
        (WAITLISTED, "Waitlisted"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    game = models.ForeignKey("games.Game", on_delete=models.CASCADE, related_name="bookings")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    status = models.CharField(max_length=12, choices=STATUSES, default=CONFIRMED)
    # Written only by the payment flow; see payments.store.
    fee_paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True)
    reminder_scheduled = models.BooleanField(default=False)
    local_notification_id = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["game__start", "created_at"]
        constraints = [
            models.UniqueConstraint(fields=["game", "user"], name="unique_booking_per_player"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.game.title} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status != self.CANCELLED
