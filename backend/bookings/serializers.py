from rest_framework import serializers

from bookings.models import Booking


class BookingSerializer(serializers.ModelSerializer):
    game_title = serializers.CharField(source="game.title", read_only=True)
    game_start = serializers.DateTimeField(source="game.start", read_only=True)
    game_end = serializers.DateTimeField(source="game.end", read_only=True)
    club_name = serializers.CharField(source="game.club.name", read_only=True)
    fee_amount = serializers.DecimalField(source="game.fee_amount", max_digits=8, decimal_places=2, read_only=True)
    fee_currency = serializers.CharField(source="game.fee_currency", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "game",
            "game_title",
            "game_start",
            "game_end",
            "club_name",
            "status",
            "fee_amount",
            "fee_currency",
            "fee_paid",
            "paid_at",
            "reminder_scheduled",
            "local_notification_id",
            "created_at",
            "cancelled_at",
        ]
        read_only_fields = fields


class ParticipantSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    display_name = serializers.CharField(source="user.label", read_only=True)
    skill_level = serializers.CharField(source="user.skill_level", read_only=True)

    class Meta:
        model = Booking
        fields = ["id", "user_id", "display_name", "skill_level", "status", "fee_paid", "created_at"]
        read_only_fields = fields


class ReminderUpdateSerializer(serializers.Serializer):
    reminder_scheduled = serializers.BooleanField()
    local_notification_id = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs["reminder_scheduled"]:
            attrs["local_notification_id"] = ""
        return attrs
