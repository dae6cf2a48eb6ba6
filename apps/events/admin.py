from django.contrib import admin

from .models import Event, EventRSVP


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'chapter', 'start_date', 'status', 'capacity', 'is_public')
    list_filter = ('status', 'is_public')
    search_fields = ('title', 'chapter__slug')


@admin.register(EventRSVP)
class EventRSVPAdmin(admin.ModelAdmin):
    list_display = ('event', 'user', 'status', 'updated_at')
    list_filter = ('status',)
    search_fields = ('user__email', 'event__title')
