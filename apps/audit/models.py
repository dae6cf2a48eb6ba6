"""
Audit trail of administrative actions within a chapter.
"""
from django.conf import settings
from django.db import models

from . import payloads


class AuditAction(models.TextChoices):
    MEMBER_JOINED = 'MEMBER_JOINED', 'Member requested to join'
    MEMBER_APPROVED = 'MEMBER_APPROVED', 'Member approved'
    MEMBER_DENIED = 'MEMBER_DENIED', 'Member denied'
    MEMBER_ROLE_CHANGED = 'MEMBER_ROLE_CHANGED', 'Member role changed'
    MEMBER_REMOVED = 'MEMBER_REMOVED', 'Member removed'
    INVITE_CREATED = 'INVITE_CREATED', 'Invite created'
    INVITE_RESENT = 'INVITE_RESENT', 'Invite resent'
    INVITE_DELETED = 'INVITE_DELETED', 'Invite deleted'
    INVITE_ACCEPTED = 'INVITE_ACCEPTED', 'Invite accepted'
    CHAPTER_SETTINGS_UPDATED = 'CHAPTER_SETTINGS_UPDATED', 'Chapter settings updated'
    JOIN_CODE_REGENERATED = 'JOIN_CODE_REGENERATED', 'Join code regenerated'
    SUBSCRIPTION_CHANGED = 'SUBSCRIPTION_CHANGED', 'Subscription changed'
    EVENT_CREATED = 'EVENT_CREATED', 'Event created'
    EVENT_UPDATED = 'EVENT_UPDATED', 'Event updated'
    EVENT_DELETED = 'EVENT_DELETED', 'Event deleted'
    CHAPTER_BROADCAST = 'CHAPTER_BROADCAST', 'Broadcast sent'
    PASSWORD_RESET_REQUESTED = 'PASSWORD_RESET_REQUESTED', 'Password reset requested'
    PASSWORD_RESET_COMPLETED = 'PASSWORD_RESET_COMPLETED', 'Password reset completed'


# Which payload variant each action carries
ACTION_PAYLOADS = {
    AuditAction.MEMBER_JOINED: payloads.MemberPayload,
    AuditAction.MEMBER_APPROVED: payloads.MemberPayload,
    AuditAction.MEMBER_DENIED: payloads.MemberPayload,
    AuditAction.MEMBER_ROLE_CHANGED: payloads.RoleChangePayload,
    AuditAction.MEMBER_REMOVED: payloads.MemberPayload,
    AuditAction.INVITE_CREATED: payloads.InvitePayload,
    AuditAction.INVITE_RESENT: payloads.InvitePayload,
    AuditAction.INVITE_DELETED: payloads.InvitePayload,
    AuditAction.INVITE_ACCEPTED: payloads.InvitePayload,
    AuditAction.CHAPTER_SETTINGS_UPDATED: payloads.SettingsPayload,
    AuditAction.JOIN_CODE_REGENERATED: payloads.SettingsPayload,
    AuditAction.SUBSCRIPTION_CHANGED: payloads.PlanChangePayload,
    AuditAction.EVENT_CREATED: payloads.EventPayload,
    AuditAction.EVENT_UPDATED: payloads.EventPayload,
    AuditAction.EVENT_DELETED: payloads.EventPayload,
    AuditAction.CHAPTER_BROADCAST: payloads.BroadcastPayload,
    AuditAction.PASSWORD_RESET_REQUESTED: payloads.PasswordResetPayload,
    AuditAction.PASSWORD_RESET_COMPLETED: payloads.PasswordResetPayload,
}


class AuditLog(models.Model):
    chapter = models.ForeignKey(
        'chapters.Chapter',
        on_delete=models.CASCADE,
        related_name='audit_logs'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    action = models.CharField(max_length=40, choices=AuditAction.choices, db_index=True)
    target_type = models.CharField(max_length=40, db_index=True)
    target_id = models.CharField(max_length=64, blank=True)
    payload = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['chapter', 'created_at']),
        ]

    def __str__(self):
        return f"{self.get_action_display()} ({self.chapter_id})"

    @property
    def details(self):
        return payloads.registry.load(self.payload)
