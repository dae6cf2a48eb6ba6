from django.contrib import admin
from .models import AuditLog

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'chapter', 'user', 'target_type', 'target_id', 'created_at')
    list_filter = ('action', 'target_type', 'created_at')
    search_fields = ('chapter__slug', 'user__email', 'target_id')
    readonly_fields = ('chapter', 'user', 'action', 'target_type', 'target_id', 'payload', 'created_at')
