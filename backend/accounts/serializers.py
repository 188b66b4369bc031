from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from bookings.models import Booking

from .models import SKILL_LEVELS

User = get_user_model()


def validate_skill_level(value: str) -> str:
    value = (value or "").strip().lower()
    if value and value not in SKILL_LEVELS:
        raise serializers.ValidationError(f"Choose one of: {', '.join(SKILL_LEVELS)}.")
    return value


def _email_taken(email: str, exclude_pk=None) -> bool:
    players = User.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        players = players.exclude(pk=exclude_pk)
    return players.exists()


def _fill_display_name(user) -> None:
    if not user.display_name:
        user.display_name = user.get_full_name() or user.email
        user.save(update_fields=["display_name"])


class UserSerializer(serializers.ModelSerializer):
    """Public profile of a player."""

    has_push_token = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "display_name",
            "skill_level",
            "has_push_token",
        ]
        read_only_fields = fields

    def get_has_push_token(self, obj) -> bool:
        return bool(obj.push_token)


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ["email", "password", "first_name", "last_name", "display_name", "skill_level"]

    def validate_email(self, value: str) -> str:
        if _email_taken(value):
            raise serializers.ValidationError("A user with this email already exists.")
        return value.lower()

    def validate_skill_level(self, value: str) -> str:
        return validate_skill_level(value)

    def create(self, validated_data):
        email = validated_data.pop("email")
        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data.pop("password"),
            **validated_data,
        )
        _fill_display_name(user)
        return user


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Log in with email + password; the email doubles as the username."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["email"] = serializers.EmailField(required=False)
        self.fields[self.username_field].required = False

    def validate(self, attrs):
        email = attrs.pop("email", None)
        if email and not attrs.get(self.username_field):
            attrs[self.username_field] = email.lower()
        if not attrs.get(self.username_field):
            raise serializers.ValidationError({"email": "This field is required."})
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["email", "first_name", "last_name", "display_name", "skill_level"]

    def validate_email(self, value: str) -> str:
        if _email_taken(value, exclude_pk=self.instance.pk):
            raise serializers.ValidationError("A user with this email already exists.")
        return value.lower()

    def validate_skill_level(self, value: str) -> str:
        return validate_skill_level(value)

    def update(self, instance, validated_data):
        # Username mirrors the email so login keeps working after a change.
        if "email" in validated_data:
            validated_data["username"] = validated_data["email"]
        user = super().update(instance, validated_data)
        _fill_display_name(user)
        return user


class PushTokenSerializer(serializers.Serializer):
    push_token = serializers.CharField(max_length=255, allow_blank=True)


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_current_password(self, value):
        if not self.context["request"].user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate(self, attrs):
        if attrs["current_password"] == attrs["new_password"]:
            raise serializers.ValidationError(
                {"new_password": "New password must differ from the current password."}
            )
        return attrs

    def save(self, **kwargs):
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user


class ProfileSerializer(UserSerializer):
    """The signed-in player's own view: profile plus clubs and upcoming games."""

    clubs = serializers.SerializerMethodField()
    upcoming_bookings = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["clubs", "upcoming_bookings"]
        read_only_fields = fields

    def get_clubs(self, obj):
        memberships = obj.club_memberships.filter(is_active=True).select_related("club").order_by("club__name")
        return [{"id": m.club_id, "name": m.club.name, "role": m.role} for m in memberships]

    def get_upcoming_bookings(self, obj) -> int:
        return obj.bookings.exclude(status=Booking.CANCELLED).filter(game__start__gte=timezone.now()).count()
