"""
SMS delivery through Twilio.
"""
import logging
import re
from dataclasses import dataclass

from django.conf import settings
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from .models import MessageLog

logger = logging.getLogger(__name__)

E164_PATTERN = re.compile(r'^\+[1-9]\d{1,14}$')


def is_valid_phone_number(value) -> bool:
    return bool(value and E164_PATTERN.match(value))


@dataclass
class SmsResult:
    success: bool
    message_id: str = ''
    status: str = ''
    error: str = ''


def twilio_client():
    return Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)


def send_sms(chapter, to, body, client=None) -> SmsResult:
    if not is_valid_phone_number(to):
        logger.warning(f"Refusing to send SMS to invalid number {to}")
        return SmsResult(success=False, error='Phone number must be in E.164 format')

    try:
        message = (client or twilio_client()).messages.create(
            body=body,
            from_=settings.TWILIO_PHONE_NUMBER,
            to=to,
        )
    except TwilioException as e:
        logger.error(f"SMS to {to} failed for chapter {chapter.slug}: {e}")
        MessageLog.objects.create(
            chapter=chapter,
            channel=MessageLog.Channel.SMS,
            recipient=to,
            content=body,
            status='failed',
            error=str(e),
        )
        return SmsResult(success=False, error=str(e))

    MessageLog.objects.create(
        chapter=chapter,
        channel=MessageLog.Channel.SMS,
        recipient=to,
        content=body,
        message_id=message.sid,
        status=message.status or 'queued',
    )
    return SmsResult(success=True, message_id=message.sid, status=message.status)
