from apps.audit.models import AuditAction, AuditLog
from apps.memberships.models import Membership, Role
from apps.users.models import User

from .conftest import PASSWORD


def join(client, chapter, email='bob@example.com', password=PASSWORD, code=None):
    return client.post(f'/api/chapters/{chapter.slug}/join/', {
        'full_name': 'Bob Member',
        'email': email,
        'password': password,
        'join_code': chapter.join_code if code is None else code,
    }, format='json')


class TestPublicChapter:
    def test_public_info_needs_no_auth(self, api_client, alpha):
        response = api_client.get('/api/chapters/alpha/')
        assert response.status_code == 200
        assert response.data['slug'] == 'alpha'
        assert 'join_code' not in response.data

    def test_check_slug(self, api_client, alpha):
        assert api_client.get('/api/chapters/check-slug/', {'slug': 'alpha'}).data['available'] is False
        assert api_client.get('/api/chapters/check-slug/', {'slug': 'beta'}).data['available'] is True
        assert api_client.get('/api/chapters/check-slug/', {'slug': 'Bad Slug'}).status_code == 400

    def test_reserved_slug_is_not_available(self, api_client):
        response = api_client.get('/api/chapters/check-slug/', {'slug': 'login'})
        assert response.status_code == 200
        assert response.data['available'] is False


class TestJoin:
    def test_join_creates_pending_membership(self, api_client, alpha, mailoutbox):
        response = join(api_client, alpha)

        assert response.status_code == 201
        assert response.data['is_pending'] is True
        bob = User.objects.get(email='bob@example.com')
        assert Membership.objects.get(user=bob, chapter=alpha).role == Role.PENDING_MEMBER
        assert AuditLog.objects.filter(chapter=alpha, action=AuditAction.MEMBER_JOINED).exists()
        # The owner hears about the request
        assert [m.to for m in mailoutbox] == [['alice@example.com']]

    def test_wrong_code(self, api_client, alpha):
        response = join(api_client, alpha, code='not-the-code')
        assert response.status_code == 400
        assert response.data['error'] == 'Invalid join code'
        assert not User.objects.filter(email='bob@example.com').exists()

    def test_unknown_chapter(self, api_client, alpha):
        response = api_client.post('/api/chapters/nope/join/', {
            'full_name': 'Bob Member',
            'email': 'bob@example.com',
            'password': PASSWORD,
            'join_code': alpha.join_code,
        }, format='json')
        assert response.status_code == 404

    def test_cannot_join_twice_while_pending(self, api_client, alpha):
        assert join(api_client, alpha).status_code == 201
        response = join(api_client, alpha)
        assert response.status_code == 400
        assert Membership.objects.filter(chapter=alpha, user__email='bob@example.com').count() == 1

    def test_cannot_join_when_already_active(self, api_client, alpha, member_membership):
        response = join(api_client, alpha)
        assert response.status_code == 400

    def test_existing_account_needs_its_password(self, api_client, alpha, make_user):
        make_user('bob@example.com')
        response = join(api_client, alpha, password='WrongPassword1')
        assert response.status_code == 400
        assert not Membership.objects.filter(chapter=alpha).filter(user__email='bob@example.com').exists()

    def test_signed_in_user_joins_as_themselves(self, as_user, alpha, make_user):
        carol = make_user('carol@example.com')
        response = join(as_user(carol), alpha, email='ignored@example.com')
        assert response.status_code == 201
        assert Membership.objects.filter(user=carol, chapter=alpha).exists()
        assert not User.objects.filter(email='ignored@example.com').exists()

    def test_signed_in_user_needs_only_the_code(self, as_user, alpha, make_user):
        carol = make_user('carol@example.com')
        response = as_user(carol).post(
            '/api/chapters/alpha/join/', {'join_code': alpha.join_code}, format='json'
        )
        assert response.status_code == 201
        assert Membership.objects.get(user=carol, chapter=alpha).role == Role.PENDING_MEMBER

    def test_anonymous_join_needs_account_fields(self, api_client, alpha):
        response = api_client.post('/api/chapters/alpha/join/', {'join_code': alpha.join_code}, format='json')
        assert response.status_code == 400
        assert set(response.data['errors']) == {'full_name', 'email', 'password'}


class TestMembershipStatus:
    def test_pending_member_can_see_own_status(self, as_user, alpha, add_member):
        pending = add_member(alpha, 'pat@example.com', Role.PENDING_MEMBER)
        response = as_user(pending.user).get('/api/chapters/alpha/membership/')
        assert response.status_code == 200
        assert response.data['is_pending'] is True

    def test_non_member_is_forbidden(self, as_user, alpha, make_user):
        response = as_user(make_user('x@example.com')).get('/api/chapters/alpha/membership/')
        assert response.status_code == 403

    def test_phone_must_be_e164(self, as_user, member_membership):
        client = as_user(member_membership.user)
        bad = client.patch('/api/chapters/alpha/membership/phone/', {'phone': '555-1234'}, format='json')
        assert bad.status_code == 400

        good = client.patch(
            '/api/chapters/alpha/membership/phone/',
            {'phone': '+12125551234', 'sms_enabled': True},
            format='json',
        )
        assert good.status_code == 200
        member_membership.refresh_from_db()
        assert member_membership.phone == '+12125551234'
        assert member_membership.sms_enabled

    def test_pending_member_cannot_set_phone(self, as_user, alpha, add_member):
        pending = add_member(alpha, 'pat@example.com', Role.PENDING_MEMBER)
        response = as_user(pending.user).patch(
            '/api/chapters/alpha/membership/phone/',
            {'phone': '+12125551234', 'sms_enabled': True},
            format='json',
        )
        assert response.status_code == 403
        pending.refresh_from_db()
        assert not pending.phone
        assert not pending.sms_enabled


class TestSettings:
    def test_admin_updates_settings(self, as_user, alpha, admin_membership):
        response = as_user(admin_membership.user).patch(
            '/api/chapters/alpha/settings/',
            {'name': 'Alpha Chapter', 'primary_color': '#112233'},
            format='json',
        )
        assert response.status_code == 200
        alpha.refresh_from_db()
        assert alpha.name == 'Alpha Chapter'

        entry = AuditLog.objects.get(action=AuditAction.CHAPTER_SETTINGS_UPDATED)
        assert entry.details.changed_fields == ('name', 'primary_color')

    def test_member_cannot_update_settings(self, as_user, member_membership):
        response = as_user(member_membership.user).patch(
            '/api/chapters/alpha/settings/', {'name': 'Hijacked'}, format='json'
        )
        assert response.status_code == 403

    def test_regenerate_join_code(self, as_user, alpha, owner):
        old = alpha.join_code
        response = as_user(owner).post('/api/chapters/alpha/join-code/')
        assert response.status_code == 200
        alpha.refresh_from_db()
        assert alpha.join_code == response.data['join_code'] != old
        assert AuditLog.objects.filter(action=AuditAction.JOIN_CODE_REGENERATED).exists()
