from django.db import models


class Payment(models.Model):
    """Local record of a payment intent created for a booking."""

    REQUIRES_PAYMENT = "requires_payment_method"
    SUCCEEDED = "succeeded"

    booking = models.ForeignKey('bookings.Booking', on_delete=models.CASCADE, related_name='payments')
    amount_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=10, default='usd')
    stripe_payment_intent = models.CharField(max_length=200, unique=True)
    status = models.CharField(max_length=30)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.stripe_payment_intent} ({self.status})"
