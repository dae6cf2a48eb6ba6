from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from apps.memberships.models import Membership, Role
from apps.payments.models import Plan, Subscription


def run(*args):
    out = StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


def test_create_chapter():
    output = run('create_chapter', 'delta', 'Dee@Example.com', '--name', 'Dee Owner', '--chapter-name', 'Delta Chi')

    membership = Membership.objects.get(chapter__slug='delta')
    assert membership.role == Role.OWNER
    assert membership.user.email == 'dee@example.com'
    assert membership.chapter.name == 'Delta Chi'
    assert Subscription.objects.get(chapter=membership.chapter).plan == Plan.FREE
    assert membership.chapter.join_code in output


def test_create_chapter_rejects_taken_slug(owner):
    with pytest.raises(CommandError):
        run('create_chapter', 'alpha', 'someone@example.com')


def test_list_plans():
    assert 'No plans found' in run('list_plans')

    run('seed_plans')
    output = run('list_plans')
    assert 'PRO' in output
    assert 'advancedReporting' in output
