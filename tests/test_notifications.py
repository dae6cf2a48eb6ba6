from types import SimpleNamespace

import pytest

from apps.audit.models import AuditAction, AuditLog
from apps.memberships.models import Role
from apps.notifications import sms
from apps.notifications.mail import render_email
from apps.notifications.models import MessageLog

BROADCAST_URL = '/api/chapters/alpha/broadcasts/'


class FakeTwilio:
    def __init__(self):
        self.sent = []
        self.messages = self

    def create(self, body, from_, to):
        self.sent.append((to, body))
        return SimpleNamespace(sid=f'SM{len(self.sent)}', status='queued')


@pytest.fixture
def twilio(monkeypatch):
    fake = FakeTwilio()
    monkeypatch.setattr(sms, 'twilio_client', lambda: fake)
    return fake


def broadcast(client, **overrides):
    data = {'subject': 'Chapter meeting', 'message': 'Meeting moved to Thursday at 7pm.'}
    data.update(overrides)
    return client.post(BROADCAST_URL, data, format='json')


class TestBroadcast:
    def test_email_reaches_active_members_only(self, as_user, owner, alpha, add_member, member_membership, mailoutbox):
        add_member(alpha, 'pete@example.com', Role.PENDING_MEMBER)

        response = broadcast(as_user(owner))

        assert response.status_code == 202
        assert response.data['recipient_count'] == 2
        recipients = sorted(m.to[0] for m in mailoutbox)
        assert recipients == ['alice@example.com', 'bob@example.com']
        assert mailoutbox[0].subject == f'Chapter meeting - {alpha.name} Announcement'
        assert MessageLog.objects.filter(channel=MessageLog.Channel.EMAIL, status='sent').count() == 2

        log = AuditLog.objects.get(action=AuditAction.CHAPTER_BROADCAST)
        assert log.payload['recipient_count'] == 2
        assert log.payload['emails_sent'] == 2

    def test_admins_filter(self, as_user, owner, admin_membership, member_membership, mailoutbox):
        response = broadcast(as_user(owner), recipient_filter='admins')

        assert response.data['recipient_count'] == 2
        assert 'bob@example.com' not in [m.to[0] for m in mailoutbox]

    def test_sms_only_needs_opted_in_phone(self, as_user, owner, member_membership, admin_membership, twilio, mailoutbox):
        member_membership.phone = '+15551234567'
        member_membership.sms_enabled = True
        member_membership.save()
        admin_membership.phone = '+15557654321'
        admin_membership.save()

        response = broadcast(as_user(owner), send_email=False, send_sms=True)

        assert response.status_code == 202
        assert response.data['sms_recipients'] == 1
        assert twilio.sent == [('+15551234567', 'Chapter meeting: Meeting moved to Thursday at 7pm.')]
        assert mailoutbox == []

    def test_no_recipients(self, as_user, owner):
        response = broadcast(as_user(owner), send_email=False, send_sms=True)
        assert response.status_code == 400
        assert response.data['error'] == 'No recipients match this broadcast'

    def test_needs_a_channel(self, as_user, owner):
        assert broadcast(as_user(owner), send_email=False, send_sms=False).status_code == 400

    def test_members_cannot_broadcast(self, as_user, member_membership):
        assert broadcast(as_user(member_membership.user)).status_code == 403


class TestSms:
    def test_invalid_number_is_not_sent(self, alpha, twilio):
        result = sms.send_sms(alpha, '555-1234', 'hello')

        assert not result.success
        assert twilio.sent == []

    def test_sent_message_is_logged(self, alpha, twilio):
        result = sms.send_sms(alpha, '+15551234567', 'hello')

        assert result.success
        log = MessageLog.objects.get(channel=MessageLog.Channel.SMS)
        assert log.message_id == result.message_id
        assert log.status == 'queued'


def test_invite_email_renders_link():
    subject, text, html = render_email('chapter_invite', {
        'chapter_name': 'Alpha',
        'inviter_name': 'Alice',
        'role_name': 'Member',
        'invite_link': 'http://localhost:8000/alpha/join/?token=abc',
    })

    assert subject == "You've been invited to join Alpha on GreekDash"
    assert 'http://localhost:8000/alpha/join/?token=abc' in text
    assert 'http://localhost:8000/alpha/join/?token=abc' in html
