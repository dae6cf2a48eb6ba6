"""
Background delivery for email and SMS.

Views call these with ``.delay()`` and return immediately; every failure is
logged here and recorded in MessageLog.
"""
import logging
from email.utils import parseaddr

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model

from apps.audit.models import AuditAction
from apps.audit.payloads import BroadcastPayload
from apps.audit.services import log_audit_entry
from apps.chapters.models import Chapter
from apps.memberships.models import Membership
from .mail import send_batch, send_email
from .models import MessageLog
from .sms import send_sms

logger = logging.getLogger(__name__)


@shared_task
def send_templated_email(to, template, context):
    return send_email(to, template, context)


@shared_task
def deliver_broadcast(chapter_id, sender_id, subject, message, recipient_filter,
                      membership_ids, send_email=True, send_sms_too=False):
    chapter = Chapter.objects.get(pk=chapter_id)
    sender = get_user_model().objects.filter(pk=sender_id).first()
    memberships = list(
        Membership.objects
        .filter(pk__in=membership_ids, chapter=chapter)
        .select_related('user')
    )

    context = {
        'chapter_name': chapter.name,
        'subject': subject,
        'message': message,
        'sender_name': sender.display_name if sender else chapter.name,
    }
    from_email = f"{chapter.name} <{parseaddr(settings.DEFAULT_FROM_EMAIL)[1]}>"

    emails_sent = 0
    if send_email:
        addresses = [m.user.email for m in memberships]
        size = settings.BROADCAST_BATCH_SIZE
        for start in range(0, len(addresses), size):
            sent, failed = send_batch(addresses[start:start + size], 'chapter_broadcast', context, from_email)
            MessageLog.objects.bulk_create(
                [
                    MessageLog(chapter=chapter, channel=MessageLog.Channel.EMAIL, recipient=address,
                               content=message, status='sent')
                    for address in sent
                ] + [
                    MessageLog(chapter=chapter, channel=MessageLog.Channel.EMAIL, recipient=address,
                               content=message, status='failed')
                    for address in failed
                ]
            )
            emails_sent += len(sent)

    sms_sent = 0
    if send_sms_too:
        body = f"{subject}: {message}"
        for m in memberships:
            if m.phone and m.sms_enabled and send_sms(chapter, m.phone, body).success:
                sms_sent += 1

    log_audit_entry(
        chapter, sender, AuditAction.CHAPTER_BROADCAST, 'BROADCAST', None,
        BroadcastPayload(
            subject=subject,
            recipient_filter=recipient_filter,
            recipient_count=len(memberships),
            emails_sent=emails_sent,
            sms_sent=sms_sent,
        ),
    )
    logger.info(f"Broadcast to {chapter.slug}: {emails_sent} emails, {sms_sent} SMS, {len(memberships)} recipients")
    return {'emails_sent': emails_sent, 'sms_sent': sms_sent}
