"""
Invitation acceptance.
"""
import logging

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.audit.models import AuditAction
from apps.audit.payloads import InvitePayload
from apps.audit.services import log_audit_entry
from apps.core.db import atomic_with_retry
from .models import Invite, Membership

logger = logging.getLogger(__name__)
User = get_user_model()


def find_open_invite(token, chapter_slug=None):
    """The invite for ``token`` if it can still be accepted."""
    invites = Invite.objects.select_related('chapter')
    if chapter_slug:
        invites = invites.filter(chapter__slug=chapter_slug)

    invite = invites.filter(token=token).first() if token else None
    if invite is None:
        raise NotFound('Invalid invite')
    if invite.accepted:
        raise ValidationError('This invite has already been used')
    if invite.is_expired:
        raise ValidationError('This invite has expired')
    return invite


@atomic_with_retry
def _accept(invite, user, password, full_name):
    if user is None:
        user = User.objects.create_user(email=invite.email, password=password, name=full_name)
    else:
        update_fields = []
        if not user.name and full_name:
            user.name = full_name
            update_fields.append('name')
        if not user.has_usable_password():
            user.set_password(password)
            update_fields.append('password')
        if update_fields:
            user.save(update_fields=update_fields)

    membership = Membership.objects.create(user=user, chapter=invite.chapter, role=invite.role)

    invite.accepted = True
    invite.accepted_at = timezone.now()
    invite.accepted_by = user
    invite.save(update_fields=['accepted', 'accepted_at', 'accepted_by'])
    return membership


def accept_invite(token, email, password, full_name=''):
    """
    Accept an invitation. Creates the account when needed (or fills in a
    missing name/password) and adds the membership with the invited role.
    """
    invite = find_open_invite(token)
    if invite.email.lower() != email.strip().lower():
        raise ValidationError('This invite was sent to a different email address')

    user = User.objects.get_by_email(invite.email)
    if user is not None:
        if Membership.objects.filter(user=user, chapter=invite.chapter).exists():
            raise ValidationError('You are already a member of this chapter')
        if user.has_usable_password() and not user.check_password(password):
            raise ValidationError('Incorrect password for this account')

    membership = _accept(invite, user, password, full_name)

    log_audit_entry(
        invite.chapter, membership.user, AuditAction.INVITE_ACCEPTED, 'INVITE', invite.pk,
        InvitePayload(email=invite.email, role=invite.role),
    )
    logger.info(f"{invite.email} accepted invite to {invite.chapter.slug} as {invite.role}")
    return membership
