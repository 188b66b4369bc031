from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("game", "user", "status", "fee_paid", "paid_at", "created_at")
    list_filter = ("status", "fee_paid")
    search_fields = ("game__title", "user__email", "stripe_payment_intent_id")
    readonly_fields = ("fee_paid", "paid_at", "stripe_payment_intent_id")
