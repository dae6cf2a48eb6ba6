import pytest
from django.test import Client
from rest_framework.test import APIClient

from apps.chapters.models import Chapter
from apps.memberships.models import Membership, Role
from apps.payments.models import Plan, Subscription
from apps.users.models import User
from apps.users.tokens import issue_tokens
from apps.users.views import create_chapter_with_owner

PASSWORD = 'Password123'


@pytest.fixture(autouse=True)
def _enable_db(db):
    pass


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user():
    def _make_user(email, name='', password=PASSWORD):
        return User.objects.create_user(email=email, password=password, name=name)
    return _make_user


@pytest.fixture
def owner():
    """Alice, who signed up and created chapter "alpha"."""
    user, _, _ = create_chapter_with_owner('Alice Owner', 'alice@example.com', PASSWORD, 'alpha')
    return user


@pytest.fixture
def alpha(owner):
    return Chapter.objects.get(slug='alpha')


@pytest.fixture
def add_member(make_user):
    def _add_member(chapter, email, role=Role.MEMBER, name=''):
        user = make_user(email, name=name or email.split('@')[0].title())
        membership = Membership.objects.create(user=user, chapter=chapter, role=role)
        return membership
    return _add_member


@pytest.fixture
def admin_membership(alpha, add_member):
    return add_member(alpha, 'dana@example.com', Role.ADMIN, 'Dana Admin')


@pytest.fixture
def member_membership(alpha, add_member):
    return add_member(alpha, 'bob@example.com', Role.MEMBER, 'Bob Member')


@pytest.fixture
def as_user(api_client):
    def _as_user(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _as_user


@pytest.fixture
def set_plan():
    def _set_plan(chapter, plan):
        Subscription.objects.filter(chapter=chapter).update(plan=plan, status=Subscription.Status.ACTIVE)
    return _set_plan


@pytest.fixture
def basic_plan(alpha, set_plan):
    set_plan(alpha, Plan.BASIC)
    return alpha


@pytest.fixture
def page_client():
    """Django test client signed in through the JWT cookie, like a browser."""
    def _page_client(user=None):
        client = Client()
        if user is not None:
            access, _ = issue_tokens(user)
            client.cookies['auth-token'] = str(access)
        return client
    return _page_client


@pytest.fixture
def owner_membership(alpha, owner):
    return Membership.objects.get(chapter=alpha, user=owner)
