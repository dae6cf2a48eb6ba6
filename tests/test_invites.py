from datetime import timedelta

from django.utils import timezone

from apps.audit.models import AuditAction, AuditLog
from apps.chapters.models import Chapter
from apps.memberships.models import Invite, Membership, Role

from .conftest import PASSWORD

INVITES_URL = '/api/chapters/alpha/invites/'


def create_invite(client, email='newbie@example.com', role=None):
    data = {'email': email}
    if role:
        data['role'] = role
    return client.post(INVITES_URL, data, format='json')


class TestCreateInvite:
    def test_create_sends_email_and_audits(self, as_user, owner, mailoutbox):
        response = create_invite(as_user(owner), role='ADMIN')

        assert response.status_code == 201
        assert response.data['role'] == Role.ADMIN
        assert response.data['status'] == 'pending'
        invite = Invite.objects.get(email='newbie@example.com')
        assert invite.expires_at > timezone.now() + timedelta(days=6)
        assert mailoutbox[-1].to == ['newbie@example.com']
        assert f'/alpha/join/?token={invite.token}' in mailoutbox[-1].body
        assert AuditLog.objects.filter(action=AuditAction.INVITE_CREATED).exists()

    def test_role_defaults_to_member(self, as_user, owner):
        assert create_invite(as_user(owner)).data['role'] == Role.MEMBER

    def test_existing_member_cannot_be_invited(self, as_user, owner, member_membership):
        response = create_invite(as_user(owner), email='BOB@example.com')
        assert response.status_code == 400

    def test_duplicate_active_invite_is_rejected(self, as_user, owner):
        client = as_user(owner)
        create_invite(client)
        assert create_invite(client).status_code == 400

    def test_members_cannot_invite(self, as_user, member_membership):
        assert create_invite(as_user(member_membership.user)).status_code == 403


class TestManageInvite:
    def test_invite_of_another_chapter_is_404(self, as_user, owner):
        beta = Chapter.objects.create(slug='beta', name='Beta')
        foreign = Invite.objects.create(
            chapter=beta, email='x@example.com', role=Role.MEMBER, token='tok-beta',
            expires_at=Invite.default_expiry(),
        )
        client = as_user(owner)
        assert client.delete(f'{INVITES_URL}{foreign.pk}/').status_code == 404
        assert client.post(f'{INVITES_URL}{foreign.pk}/resend/').status_code == 404
        assert Invite.objects.filter(pk=foreign.pk).exists()

    def test_resend_resets_expiry(self, as_user, alpha, owner, mailoutbox):
        invite = Invite.objects.create(
            chapter=alpha, email='late@example.com', role=Role.MEMBER, token='tok-late',
            expires_at=timezone.now() + timedelta(hours=1),
        )
        response = as_user(owner).post(f'{INVITES_URL}{invite.pk}/resend/')

        assert response.status_code == 200
        invite.refresh_from_db()
        assert invite.expires_at > timezone.now() + timedelta(days=6)
        assert mailoutbox[-1].to == ['late@example.com']

    def test_resend_accepted_invite_is_400(self, as_user, alpha, owner):
        invite = Invite.objects.create(
            chapter=alpha, email='done@example.com', role=Role.MEMBER, token='tok-done',
            expires_at=Invite.default_expiry(), accepted=True,
        )
        assert as_user(owner).post(f'{INVITES_URL}{invite.pk}/resend/').status_code == 400

    def test_delete(self, as_user, alpha, owner):
        invite = Invite.objects.create(
            chapter=alpha, email='gone@example.com', role=Role.MEMBER, token='tok-gone',
            expires_at=Invite.default_expiry(),
        )
        assert as_user(owner).delete(f'{INVITES_URL}{invite.pk}/').status_code == 204
        assert not Invite.objects.filter(pk=invite.pk).exists()
        assert AuditLog.objects.filter(action=AuditAction.INVITE_DELETED).exists()


class TestAcceptInvite:
    def make_invite(self, chapter, **kwargs):
        defaults = dict(
            chapter=chapter, email='newbie@example.com', role=Role.ADMIN, token='tok-1',
            expires_at=Invite.default_expiry(),
        )
        defaults.update(kwargs)
        return Invite.objects.create(**defaults)

    def accept(self, client, token='tok-1', email='newbie@example.com', password=PASSWORD):
        return client.post('/api/invites/accept/', {
            'invite_token': token,
            'email': email,
            'full_name': 'New Person',
            'password': password,
        }, format='json')

    def test_validate(self, api_client, alpha):
        self.make_invite(alpha)
        response = api_client.get('/api/invites/validate/', {'token': 'tok-1', 'chapter_slug': 'alpha'})
        assert response.status_code == 200
        assert response.data['valid'] is True
        assert response.data['email'] == 'newbie@example.com'

        wrong_chapter = api_client.get('/api/invites/validate/', {'token': 'tok-1', 'chapter_slug': 'beta'})
        assert wrong_chapter.status_code == 404

    def test_accept_creates_account_with_invited_role(self, api_client, alpha):
        invite = self.make_invite(alpha)
        response = self.accept(api_client, email='NewBie@example.com')

        assert response.status_code == 201
        membership = Membership.objects.get(chapter=alpha, user__email='newbie@example.com')
        assert membership.role == Role.ADMIN
        assert membership.user.check_password(PASSWORD)
        invite.refresh_from_db()
        assert invite.accepted
        assert invite.accepted_by == membership.user
        assert AuditLog.objects.filter(action=AuditAction.INVITE_ACCEPTED).exists()

    def test_unknown_token_is_404(self, api_client, alpha):
        assert self.accept(api_client, token='missing').status_code == 404

    def test_expired_invite(self, api_client, alpha):
        self.make_invite(alpha, expires_at=timezone.now() - timedelta(minutes=1))
        response = self.accept(api_client)
        assert response.status_code == 400
        assert response.data['error'] == 'This invite has expired'

    def test_used_invite(self, api_client, alpha):
        self.make_invite(alpha, accepted=True)
        assert self.accept(api_client).status_code == 400

    def test_email_mismatch(self, api_client, alpha):
        self.make_invite(alpha)
        response = self.accept(api_client, email='someone.else@example.com')
        assert response.status_code == 400
        assert not Membership.objects.filter(chapter=alpha, user__email='newbie@example.com').exists()

    def test_already_member(self, api_client, alpha, member_membership):
        self.make_invite(alpha, email='bob@example.com')
        assert self.accept(api_client, email='bob@example.com').status_code == 400
