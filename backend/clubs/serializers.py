from django.utils.text import slugify
from rest_framework import serializers

from .models import Club, ClubMembership


class ClubSerializer(serializers.ModelSerializer):
    logo_url = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()
    my_role = serializers.SerializerMethodField()

    class Meta:
        model = Club
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "address",
            "latitude",
            "longitude",
            "contact_email",
            "logo_url",
            "member_count",
            "my_role",
            "created_at",
        ]
        read_only_fields = ["id", "slug", "logo_url", "member_count", "my_role", "created_at"]

    def get_logo_url(self, obj: Club) -> str | None:
        if not obj.logo:
            return None
        request = self.context.get("request")
        url = obj.logo.url
        if request is not None:
            return request.build_absolute_uri(url)
        return url

    def get_member_count(self, obj: Club) -> int:
        return obj.memberships.filter(is_active=True).count()

    def get_my_role(self, obj: Club) -> str | None:
        request = self.context.get("request")
        if request is None or not request.user.is_authenticated:
            return None
        membership = obj.memberships.filter(user=request.user, is_active=True).first()
        return membership.role if membership else None

    def _unique_slug(self, name: str) -> str:
        base = slugify(name) or "club"
        slug = base
        suffix = 2
        while Club.objects.filter(slug=slug).exists():
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def create(self, validated_data):
        validated_data["slug"] = self._unique_slug(validated_data["name"])
        return super().create(validated_data)


class ClubMembershipSerializer(serializers.ModelSerializer):
    user_display_name = serializers.CharField(source="user.label", read_only=True)

    class Meta:
        model = ClubMembership
        fields = ["id", "club", "user", "user_display_name", "role", "is_active", "created_at"]
        read_only_fields = fields
