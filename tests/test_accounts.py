from apps.audit.models import AuditAction, AuditLog
from apps.memberships.models import Membership, Role
from apps.payments.models import Plan, Subscription
from apps.users.models import User, VerificationToken
from apps.users.passwords import issue_reset_token

from .conftest import PASSWORD

REGISTER_URL = '/api/account/register/'
FORGOT_URL = '/api/account/forgot-password/'
RESET_URL = '/api/account/reset-password/'


class TestRegister:
    def test_creates_chapter_owner_and_free_subscription(self, api_client):
        response = api_client.post(REGISTER_URL, {
            'full_name': 'Alice Owner',
            'email': 'Alice@Example.com',
            'chapter_slug': 'alpha',
            'password': PASSWORD,
        }, format='json')

        assert response.status_code == 201
        assert response.data['chapter']['name'] == "Alice's Chapter"
        user = User.objects.get(email='alice@example.com')
        membership = Membership.objects.get(user=user)
        assert membership.role == Role.OWNER
        assert membership.chapter.join_code
        assert Subscription.objects.get(chapter=membership.chapter).plan == Plan.FREE

    def test_taken_slug_is_rejected(self, api_client, alpha):
        response = api_client.post(REGISTER_URL, {
            'full_name': 'Someone Else',
            'email': 'someone@example.com',
            'chapter_slug': 'alpha',
            'password': PASSWORD,
        }, format='json')
        assert response.status_code == 400
        assert 'chapter_slug' in response.data['errors']

    def test_reserved_slug_is_rejected(self, api_client):
        response = api_client.post(REGISTER_URL, {
            'full_name': 'Someone Else',
            'email': 'someone@example.com',
            'chapter_slug': 'admin',
            'password': PASSWORD,
        }, format='json')
        assert response.status_code == 400

    def test_existing_email_is_rejected(self, api_client, owner):
        response = api_client.post(REGISTER_URL, {
            'full_name': 'Alice Again',
            'email': 'alice@example.com',
            'chapter_slug': 'gamma',
            'password': PASSWORD,
        }, format='json')
        assert response.status_code == 400
        assert response.data['error'] == 'An account with this email already exists.'


class TestPasswordReset:
    def test_response_is_the_same_for_unknown_email(self, api_client, owner, mailoutbox):
        known = api_client.post(FORGOT_URL, {'email': 'alice@example.com'}, format='json')
        unknown = api_client.post(FORGOT_URL, {'email': 'nobody@example.com'}, format='json')

        assert known.status_code == unknown.status_code == 200
        assert known.data == unknown.data
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ['alice@example.com']
        assert '/reset-password/?token=' in mailoutbox[0].body

    def test_request_replaces_old_tokens_and_is_audited(self, api_client, alpha, owner):
        issue_reset_token(owner)
        api_client.post(FORGOT_URL, {'email': 'alice@example.com'}, format='json')

        tokens = VerificationToken.objects.filter(identifier='alice@example.com')
        assert tokens.count() == 1
        assert tokens.get().token.startswith('pwd_reset_')
        assert len(tokens.get().token) == len('pwd_reset_') + 64
        assert AuditLog.objects.filter(chapter=alpha, action=AuditAction.PASSWORD_RESET_REQUESTED).exists()

    def test_reset_sets_password_and_clears_tokens(self, api_client, alpha, owner):
        raw = issue_reset_token(owner)

        verify = api_client.post('/api/account/verify-reset-token/', {'token': raw}, format='json')
        assert verify.data == {'valid': True}

        response = api_client.post(RESET_URL, {'token': raw, 'password': 'NewPassw0rd'}, format='json')
        assert response.status_code == 200

        owner.refresh_from_db()
        assert owner.check_password('NewPassw0rd')
        assert not VerificationToken.objects.filter(identifier=owner.email).exists()
        assert AuditLog.objects.filter(action=AuditAction.PASSWORD_RESET_COMPLETED).count() == 1

        again = api_client.post(RESET_URL, {'token': raw, 'password': 'OtherPassw0rd'}, format='json')
        assert again.status_code == 400

    def test_weak_password_is_rejected(self, api_client, owner):
        raw = issue_reset_token(owner)
        response = api_client.post(RESET_URL, {'token': raw, 'password': 'alllowercase1'}, format='json')
        assert response.status_code == 400
        assert 'password' in response.data['errors']


class TestMemberships:
    def test_lists_callers_chapters(self, as_user, alpha, owner):
        response = as_user(owner).get('/api/account/memberships/')
        assert response.status_code == 200
        assert response.data == [{
            'id': response.data[0]['id'],
            'role': Role.OWNER,
            'chapter_id': alpha.id,
            'chapter_slug': 'alpha',
            'chapter_name': alpha.name,
        }]

    def test_requires_authentication(self, api_client):
        response = api_client.get('/api/account/memberships/')
        assert response.status_code == 401
        assert 'error' in response.data
