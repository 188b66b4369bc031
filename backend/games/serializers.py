from rest_framework import serializers

from accounts.serializers import validate_skill_level
from bookings.models import Booking
from bookings.serializers import ParticipantSerializer
from .models import Game


class GameSerializer(serializers.ModelSerializer):
    club_name = serializers.CharField(source="club.name", read_only=True)
    confirmed_count = serializers.SerializerMethodField()
    waitlist_count = serializers.SerializerMethodField()
    spots_left = serializers.SerializerMethodField()
    is_free = serializers.BooleanField(read_only=True)
    my_booking = serializers.SerializerMethodField()

    class Meta:
        model = Game
        fields = [
            "id",
            "club",
            "club_name",
            "title",
            "description",
            "location",
            "start",
            "end",
            "skill_level",
            "max_players",
            "fee_amount",
            "fee_currency",
            "is_free",
            "confirmed_count",
            "waitlist_count",
            "spots_left",
            "my_booking",
        ]

    def _count(self, obj: Game, status: str) -> int:
        return sum(1 for booking in obj.bookings.all() if booking.status == status)

    def get_confirmed_count(self, obj: Game) -> int:
        return self._count(obj, Booking.CONFIRMED)

    def get_waitlist_count(self, obj: Game) -> int:
        return self._count(obj, Booking.WAITLISTED)

    def get_spots_left(self, obj: Game) -> int:
        return max(obj.max_players - self.get_confirmed_count(obj), 0)

    def get_my_booking(self, obj: Game):
        request = self.context.get("request")
        if request is None or not request.user.is_authenticated:
            return None
        for booking in obj.bookings.all():
            if booking.user_id == request.user.id:
                return {"id": str(booking.id), "status": booking.status, "fee_paid": booking.fee_paid}
        return None

    def validate_skill_level(self, value: str) -> str:
        return validate_skill_level(value)

    def validate_fee_currency(self, value: str) -> str:
        value = value.strip().lower()
        if len(value) != 3 or not value.isalpha():
            raise serializers.ValidationError("Use a three-letter ISO currency code.")
        return value

    def validate(self, attrs):
        start = attrs.get("start", getattr(self.instance, "start", None))
        end = attrs.get("end", getattr(self.instance, "end", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"end": "End time must be after the start time."})
        return attrs


class GameDetailSerializer(GameSerializer):
    participants = serializers.SerializerMethodField()

    class Meta(GameSerializer.Meta):
        fields = GameSerializer.Meta.fields + ["participants"]

    def get_participants(self, obj: Game):
        active = [booking for booking in obj.bookings.all() if booking.status != Booking.CANCELLED]
        active.sort(key=lambda booking: (booking.status != Booking.CONFIRMED, booking.created_at))
        return ParticipantSerializer(active, many=True).data
