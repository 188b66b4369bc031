from django.utils import timezone
from rest_framework import mixins, permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from bookings.models import Booking
from bookings.serializers import BookingSerializer, ReminderUpdateSerializer
from bookings.services.reservations import cancel_booking


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """The authenticated player's own bookings."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "fee_paid"]

    def get_queryset(self):
        queryset = Booking.objects.filter(user=self.request.user).select_related("game", "game__club")
        if self.request.query_params.get("upcoming") in {"1", "true"}:
            queryset = queryset.filter(game__start__gte=timezone.now())
        return queryset

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        booking = self.get_object()
        cancel_booking(booking)
        booking.refresh_from_db()
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["patch"])
    def reminder(self, request, pk=None):
        booking = self.get_object()
        serializer = ReminderUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking.reminder_scheduled = serializer.validated_data["reminder_scheduled"]
        booking.local_notification_id = serializer.validated_data.get(
            "local_notification_id", booking.local_notification_id
        )
        booking.save(update_fields=["reminder_scheduled", "local_notification_id"])
        return Response(BookingSerializer(booking).data)
