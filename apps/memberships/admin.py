from django.contrib import admin
from .models import Invite, Membership

@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ('user', 'chapter', 'role', 'sms_enabled', 'created_at')
    list_filter = ('role', 'sms_enabled')
    search_fields = ('user__email', 'user__name', 'chapter__slug')
    raw_id_fields = ('user', 'chapter')

@admin.register(Invite)
class InviteAdmin(admin.ModelAdmin):
    list_display = ('email', 'chapter', 'role', 'accepted', 'expires_at', 'created_at')
    list_filter = ('role', 'accepted')
    search_fields = ('email', 'chapter__slug')
    readonly_fields = ('token', 'created_at', 'accepted_at')
