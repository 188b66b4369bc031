from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class PlayerAdmin(UserAdmin):
    list_display = ("email", "display_name", "skill_level", "is_staff")
    search_fields = ("email", "display_name", "first_name", "last_name")
    fieldsets = UserAdmin.fieldsets + (
        ("Player", {"fields": ("display_name", "skill_level", "push_token")}),
    )
