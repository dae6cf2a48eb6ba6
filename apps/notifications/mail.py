"""
Transactional email rendering and delivery.

Each template has ``templates/emails/<name>.txt`` and ``.html`` bodies and a
subject pattern below. Delivery failures are logged, never raised.
"""
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

SUBJECTS = {
    'password_reset': 'Reset Your GreekDash Password',
    'chapter_invite': "You've been invited to join {chapter_name} on GreekDash",
    'member_approval': 'Your membership has been approved for {chapter_name}',
    'join_request': 'New membership request for {chapter_name}',
    'chapter_broadcast': '{subject} - {chapter_name} Announcement',
}


def render_email(template, context):
    """Return ``(subject, text, html)`` for ``template``."""
    subject = SUBJECTS[template].format(**context)
    text = render_to_string(f"emails/{template}.txt", context)
    html = render_to_string(f"emails/{template}.html", context)
    return subject, text, html


def build_message(to, template, context, from_email=None, connection=None):
    subject, text, html = render_email(template, context)
    message = EmailMultiAlternatives(
        subject,
        text,
        from_email or settings.DEFAULT_FROM_EMAIL,
        [to],
        connection=connection,
    )
    message.attach_alternative(html, 'text/html')
    return message


def send_email(to, template, context, from_email=None) -> bool:
    try:
        build_message(to, template, context, from_email).send(fail_silently=False)
        return True
    except Exception as e:
        # Log error but don't fail the caller
        logger.error(f"Failed to send {template} email to {to}: {e}")
        return False


def send_batch(recipients, template, context, from_email=None):
    """
    Send the same email to each address over one SMTP connection.
    Returns ``(sent, failed)`` address lists.
    """
    sent, failed = [], []
    try:
        connection = get_connection()
        connection.open()
    except Exception as e:
        logger.error(f"Could not open mail connection for {template} batch: {e}")
        return sent, list(recipients)

    try:
        for to in recipients:
            try:
                build_message(to, template, context, from_email, connection).send(fail_silently=False)
                sent.append(to)
            except Exception as e:
                logger.error(f"Failed to send {template} email to {to}: {e}")
                failed.append(to)
    finally:
        connection.close()
    return sent, failed
