from django.conf import settings
from django.db import models
from django.utils import timezone


class Role(models.TextChoices):
    """
    Membership roles, declared from least to most privileged.
    Comparisons go through ``Role.at_least`` which uses this order.
    """
    PENDING_MEMBER = 'PENDING_MEMBER', 'Pending member'   # Waiting for approval
    MEMBER = 'MEMBER', 'Member'                           # Portal, events, RSVPs
    ADMIN = 'ADMIN', 'Admin'                              # Members, events, finance
    OWNER = 'OWNER', 'Owner'                              # Everything + billing

    @classmethod
    def rank(cls, role) -> int:
        return cls.values.index(str(role))

    @classmethod
    def at_least(cls, role, threshold) -> bool:
        if role is None:
            return False
        return cls.rank(role) >= cls.rank(threshold)


# Roles an invite can grant and an admin can assign
ASSIGNABLE_ROLES = (Role.MEMBER, Role.ADMIN)


class MembershipQuerySet(models.QuerySet):
    def active(self):
        return self.exclude(role=Role.PENDING_MEMBER)

    def pending(self):
        return self.filter(role=Role.PENDING_MEMBER)

    def admins(self):
        return self.filter(role__in=[Role.ADMIN, Role.OWNER])


class Membership(models.Model):
    """Links a user to a chapter with a role."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    chapter = models.ForeignKey(
        'chapters.Chapter',
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.PENDING_MEMBER)

    # Per-chapter contact preferences
    phone = models.CharField(max_length=16, blank=True)
    sms_enabled = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MembershipQuerySet.as_manager()

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'chapter'], name='unique_membership_per_chapter'),
        ]

    def __str__(self):
        return f"{self.user.email} @ {self.chapter.slug} - {self.get_role_display()}"

    @property
    def is_pending(self) -> bool:
        return self.role == Role.PENDING_MEMBER

    def has_role(self, threshold) -> bool:
        return Role.at_least(self.role, threshold)


class InviteQuerySet(models.QuerySet):
    def active(self):
        return self.filter(accepted=False, expires_at__gt=timezone.now())


class Invite(models.Model):
    """Invitation to join a chapter with a given role. Consumed once."""

    EXPIRY_DAYS = 7

    chapter = models.ForeignKey(
        'chapters.Chapter',
        on_delete=models.CASCADE,
        related_name='invites'
    )
    email = models.EmailField()
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    token = models.CharField(max_length=255, unique=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='invites_sent'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()

    accepted = models.BooleanField(default=False)
    accepted_at = models.DateTimeField(null=True, blank=True)
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invites_accepted'
    )

    objects = InviteQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Invite: {self.email} as {self.get_role_display()} ({self.chapter.slug})"

    @property
    def is_expired(self) -> bool:
        return self.expires_at < timezone.now()

    @classmethod
    def default_expiry(cls):
        return timezone.now() + timezone.timedelta(days=cls.EXPIRY_DAYS)
