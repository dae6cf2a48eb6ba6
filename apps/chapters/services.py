"""
Joining a chapter with its join code.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError
from rest_framework.exceptions import ValidationError

from apps.audit.models import AuditAction
from apps.audit.payloads import MemberPayload
from apps.audit.services import log_audit_entry
from apps.core.db import atomic_with_retry
from apps.memberships.models import Membership, Role
from apps.notifications.tasks import send_templated_email

logger = logging.getLogger(__name__)
User = get_user_model()

ALREADY_MEMBER = 'You are already a member or have a pending request for this chapter'


@atomic_with_retry
def _create_pending_membership(chapter, user, full_name, email, password):
    if user is None:
        user = User.objects.create_user(email=email, password=password, name=full_name)
    return Membership.objects.create(user=user, chapter=chapter, role=Role.PENDING_MEMBER)


def notify_admins_of_join(chapter, user):
    context = {
        'chapter_name': chapter.name,
        'member_name': user.display_name,
        'member_email': user.email,
        'review_link': f"{settings.APP_URL}/{chapter.slug}/admin/",
    }
    for admin in Membership.objects.filter(chapter=chapter).admins().select_related('user'):
        send_templated_email.delay(admin.user.email, 'join_request', context)


def join_chapter(chapter, full_name, email, password, join_code, user=None):
    """
    Request membership in ``chapter``. The account is created when the email
    is new; an existing account must supply its password unless ``user`` is
    already signed in. The membership starts as PENDING_MEMBER.
    """
    if join_code != chapter.join_code:
        raise ValidationError('Invalid join code')

    if user is None:
        user = User.objects.get_by_email(email)
        if user is not None and not user.check_password(password):
            raise ValidationError('An account with this email already exists. Sign in to join this chapter.')

    if user is not None and Membership.objects.filter(user=user, chapter=chapter).exists():
        raise ValidationError(ALREADY_MEMBER)

    try:
        membership = _create_pending_membership(chapter, user, full_name, email, password)
    except IntegrityError:
        # Lost a race with a concurrent join for the same user and chapter
        raise ValidationError(ALREADY_MEMBER)

    log_audit_entry(
        chapter, membership.user, AuditAction.MEMBER_JOINED, 'MEMBERSHIP', membership.pk,
        MemberPayload(email=membership.user.email, name=membership.user.name),
    )
    notify_admins_of_join(chapter, membership.user)
    logger.info(f"{membership.user.email} requested to join {chapter.slug}")
    return membership
