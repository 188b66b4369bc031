from django.contrib import admin

from .models import Game


@admin.register(Game)
class GameAdmin(admin.ModelAdmin):
    list_display = ("title", "club", "start", "max_players", "fee_amount", "fee_currency")
    list_filter = ("club", "fee_currency")
    search_fields = ("title", "club__name", "location")
