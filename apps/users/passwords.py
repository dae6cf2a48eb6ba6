"""
Password reset tokens and the reset flow.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.audit.models import AuditAction
from apps.audit.payloads import PasswordResetPayload
from apps.audit.services import log_audit_entry
from apps.memberships.models import Membership
from apps.notifications.tasks import send_templated_email
from .models import VerificationToken

logger = logging.getLogger(__name__)

RESET_TOKEN_LIFETIME = timedelta(hours=1)


def issue_reset_token(user) -> str:
    """Replace any outstanding reset tokens for ``user`` with a fresh one."""
    prefix = VerificationToken.PASSWORD_RESET_PREFIX
    VerificationToken.objects.filter(identifier=user.email, token__startswith=prefix).delete()

    raw = secrets.token_hex(32)
    VerificationToken.objects.create(
        identifier=user.email,
        token=f"{prefix}{raw}",
        expires=timezone.now() + RESET_TOKEN_LIFETIME,
    )
    return raw


def find_reset_token(raw):
    """The unexpired stored token for ``raw`` or ``None``."""
    if not raw:
        return None
    return VerificationToken.objects.filter(
        token=f"{VerificationToken.PASSWORD_RESET_PREFIX}{raw}",
        expires__gt=timezone.now(),
    ).first()


def clear_reset_tokens(email):
    VerificationToken.objects.filter(
        identifier=email,
        token__startswith=VerificationToken.PASSWORD_RESET_PREFIX,
    ).delete()


def _first_chapter(user):
    membership = Membership.objects.filter(user=user).select_related('chapter').first()
    return membership.chapter if membership else None


def request_password_reset(email):
    """
    Email a reset link when ``email`` belongs to an active account. Callers
    report the same outcome either way.
    """
    user = get_user_model().objects.get_by_email(email)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown email")
        return

    token = issue_reset_token(user)
    send_templated_email.delay(user.email, 'password_reset', {
        'user_name': user.name,
        'reset_link': f"{settings.APP_URL}/reset-password/?token={token}",
    })
    chapter = _first_chapter(user)
    if chapter is not None:
        log_audit_entry(
            chapter, user, AuditAction.PASSWORD_RESET_REQUESTED, 'USER', user.pk,
            PasswordResetPayload(email=user.email),
        )
    logger.info(f"Password reset requested for user {user.pk}")


def complete_password_reset(raw, password):
    """Set a new password from a reset token. Returns the user or ``None``."""
    stored = find_reset_token(raw)
    user = get_user_model().objects.get_by_email(stored.identifier) if stored else None
    if user is None:
        return None

    user.set_password(password)
    user.save(update_fields=['password', 'updated_at'])
    clear_reset_tokens(user.email)

    chapter = _first_chapter(user)
    if chapter is not None:
        log_audit_entry(
            chapter, user, AuditAction.PASSWORD_RESET_COMPLETED, 'USER', user.pk,
            PasswordResetPayload(email=user.email),
        )
    logger.info(f"Password reset completed for user {user.pk}")
    return user
