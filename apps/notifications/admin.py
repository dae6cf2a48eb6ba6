from django.contrib import admin
from .models import MessageLog

@admin.register(MessageLog)
class MessageLogAdmin(admin.ModelAdmin):
    list_display = ('channel', 'recipient', 'chapter', 'status', 'created_at')
    list_filter = ('channel', 'status', 'created_at')
    search_fields = ('recipient', 'chapter__slug', 'message_id')
    readonly_fields = ('created_at',)
