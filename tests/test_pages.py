from apps.chapters.models import Chapter
from apps.memberships.models import Membership, Role
from apps.payments.models import Plan

from .conftest import PASSWORD


class TestAccountPages:
    def test_login_sets_cookies_and_lands_on_portal(self, page_client, owner):
        response = page_client().post('/login/', {'email': 'Alice@Example.com', 'password': PASSWORD})

        assert response.status_code == 302
        assert response.url == '/alpha/portal/'
        assert response.cookies['auth-token'].value
        assert response.cookies['refresh-token'].value

    def test_login_honours_safe_next(self, page_client, owner):
        client = page_client()
        local = client.post('/login/', {'email': 'alice@example.com', 'password': PASSWORD, 'next': '/alpha/admin/'})
        offsite = client.post('/login/', {
            'email': 'alice@example.com', 'password': PASSWORD, 'next': 'https://evil.example.com/',
        })

        assert local.url == '/alpha/admin/'
        assert offsite.url == '/alpha/portal/'

    def test_bad_login(self, page_client, owner):
        response = page_client().post('/login/', {'email': 'alice@example.com', 'password': 'wrong-password'})

        assert response.status_code == 400
        assert b'Invalid email or password' in response.content
        assert 'auth-token' not in response.cookies

    def test_home_redirects(self, page_client, owner, make_user):
        assert page_client().get('/').url == '/login/'
        assert page_client(owner).get('/').url == '/alpha/portal/'
        assert page_client(make_user('nobody@example.com')).get('/').url == '/signup/'

    def test_signup_creates_chapter(self, page_client):
        response = page_client().post('/signup/', {
            'full_name': 'Gina Founder',
            'email': 'gina@example.com',
            'chapter_slug': 'gamma-beta',
            'password': PASSWORD,
        })

        assert response.status_code == 302
        assert response.url == '/gamma-beta/admin/'
        membership = Membership.objects.get(chapter__slug='gamma-beta')
        assert membership.role == Role.OWNER
        assert membership.chapter.subscription.plan == Plan.FREE

    def test_signup_with_taken_slug(self, page_client, owner):
        response = page_client().post('/signup/', {
            'full_name': 'Gina Founder',
            'email': 'gina@example.com',
            'chapter_slug': 'alpha',
            'password': PASSWORD,
        })
        assert response.status_code == 400
        assert b'This chapter URL is already taken.' in response.content

    def test_logout_clears_cookies(self, page_client, owner):
        response = page_client(owner).get('/logout/')

        assert response.url == '/login/'
        assert response.cookies['auth-token'].value == ''


class TestChapterPages:
    def test_unknown_chapter_is_404(self, page_client, owner):
        assert page_client(owner).get('/nowhere/portal/').status_code == 404
        assert page_client().get('/nowhere/').status_code == 404

    def test_landing_is_public(self, page_client, alpha):
        response = page_client().get('/alpha/')
        assert response.status_code == 200
        assert b'Request to join' in response.content

    def test_anonymous_is_sent_to_login(self, page_client, alpha):
        response = page_client().get('/alpha/portal/')
        assert response.url == '/login/?next=/alpha/portal/'

    def test_non_member_is_sent_to_join(self, page_client, alpha, make_user):
        response = page_client(make_user('carol@example.com')).get('/alpha/portal/')
        assert response.url == '/alpha/join/'

    def test_member_cannot_open_admin(self, page_client, member_membership):
        client = page_client(member_membership.user)
        assert client.get('/alpha/portal/').status_code == 200
        assert client.get('/alpha/admin/').url == '/alpha/portal/'

    def test_admin_cannot_open_billing(self, page_client, admin_membership):
        client = page_client(admin_membership.user)
        assert client.get('/alpha/admin/').status_code == 200
        assert client.get('/alpha/admin/billing/').url == '/alpha/admin/'

    def test_owner_opens_billing(self, page_client, owner):
        assert page_client(owner).get('/alpha/admin/billing/').status_code == 200

    def test_join_with_code_then_pending(self, page_client, alpha):
        client = page_client()
        response = client.post('/alpha/join/', {
            'full_name': 'Pete Pledge',
            'email': 'pete@example.com',
            'password': PASSWORD,
            'join_code': alpha.join_code,
        })

        assert response.url == '/alpha/pending/'
        membership = Membership.objects.get(chapter=alpha, user__email='pete@example.com')
        assert membership.role == Role.PENDING_MEMBER

        client.cookies['auth-token'] = response.cookies['auth-token'].value
        assert client.get('/alpha/pending/').status_code == 200
        assert client.get('/alpha/portal/').url == '/alpha/pending/'

    def test_join_with_wrong_code(self, page_client, alpha):
        response = page_client().post('/alpha/join/', {
            'full_name': 'Pete Pledge',
            'email': 'pete@example.com',
            'password': PASSWORD,
            'join_code': 'not-the-code',
        })
        assert response.status_code == 400
        assert b'Invalid join code' in response.content
        assert b'value="not-the-code"' in response.content

    def test_join_with_incomplete_form(self, page_client, alpha):
        response = page_client().post('/alpha/join/', {'join_code': alpha.join_code})
        assert response.status_code == 400

    def test_member_joining_again_sees_error(self, page_client, alpha, member_membership):
        response = page_client(member_membership.user).post('/alpha/join/', {'join_code': alpha.join_code})
        assert response.status_code == 400
        assert b'already a member' in response.content

    def test_signed_in_user_joins_with_code_only(self, page_client, make_user, alpha):
        carol = make_user('carol@example.com', name='Carol')
        response = page_client(carol).post('/alpha/join/', {'join_code': alpha.join_code})

        assert response.url == '/alpha/pending/'
        assert Membership.objects.filter(chapter=alpha, user=carol, role=Role.PENDING_MEMBER).exists()

    def test_second_chapter_membership_is_separate(self, page_client, owner, add_member):
        beta = Chapter.objects.create(slug='beta', name='Beta')
        bob = add_member(beta, 'bob@example.com', Role.MEMBER)

        assert page_client(bob.user).get('/beta/portal/').status_code == 200
        assert page_client(bob.user).get('/alpha/portal/').url == '/alpha/join/'
