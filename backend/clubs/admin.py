from django.contrib import admin

from .models import Club, ClubMembership


class ClubMembershipInline(admin.TabularInline):
    model = ClubMembership
    extra = 0


@admin.register(Club)
class ClubAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "address", "contact_email")
    search_fields = ("name", "slug", "address")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ClubMembershipInline]
