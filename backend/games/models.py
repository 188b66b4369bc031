from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Game(models.Model):
    club = models.ForeignKey('clubs.Club', on_delete=models.CASCADE, related_name='games')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=200, blank=True)
    start = models.DateTimeField()
    end = models.DateTimeField()
    skill_level = models.CharField(max_length=20, blank=True)
    max_players = models.PositiveIntegerField(default=4, validators=[MinValueValidator(1)])
    fee_amount = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    fee_currency = models.CharField(max_length=10, default='usd')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_games',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['start', 'id']

    def __str__(self):
        return f"{self.title} @ {self.club}"

    @property
    def fee_cents(self) -> int:
        cents = (self.fee_amount or Decimal('0')) * 100
        return int(cents.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    @property
    def is_free(self) -> bool:
        return self.fee_cents <= 0

    def clean(self):
        super().clean()
        if self.start and self.end and self.end <= self.start:
            raise ValidationError({"end": "End time must be after the start time."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
