from apps.audit.models import AuditAction, AuditLog
from apps.chapters.models import Chapter
from apps.memberships.models import Membership, Role

from .conftest import PASSWORD


def members_url(membership, action=''):
    suffix = f'{action}/' if action else ''
    return f'/api/chapters/{membership.chapter.slug}/members/{membership.pk}/{suffix}'


class TestApproval:
    def test_approve_pending_member(self, as_user, alpha, owner, add_member, mailoutbox):
        pending = add_member(alpha, 'pat@example.com', Role.PENDING_MEMBER)

        response = as_user(owner).post(members_url(pending, 'approve'))

        assert response.status_code == 200
        pending.refresh_from_db()
        assert pending.role == Role.MEMBER
        assert AuditLog.objects.filter(action=AuditAction.MEMBER_APPROVED).exists()
        assert mailoutbox[-1].to == ['pat@example.com']

    def test_approve_active_member_is_400(self, as_user, owner, member_membership):
        response = as_user(owner).post(members_url(member_membership, 'approve'))
        assert response.status_code == 400

    def test_deny_deletes_and_second_deny_is_404(self, as_user, alpha, owner, add_member):
        pending = add_member(alpha, 'pat@example.com', Role.PENDING_MEMBER)
        client = as_user(owner)

        first = client.post(members_url(pending, 'deny'))
        second = client.post(members_url(pending, 'deny'))

        assert first.status_code == 200
        assert not Membership.objects.filter(pk=pending.pk).exists()
        assert second.status_code == 404
        assert AuditLog.objects.filter(action=AuditAction.MEMBER_DENIED).count() == 1

    def test_membership_of_another_chapter_is_404(self, as_user, owner, add_member):
        beta = Chapter.objects.create(slug='beta', name='Beta')
        foreign = add_member(beta, 'pat@example.com', Role.PENDING_MEMBER)

        response = as_user(owner).post(f'/api/chapters/alpha/members/{foreign.pk}/approve/')
        assert response.status_code == 404
        foreign.refresh_from_db()
        assert foreign.role == Role.PENDING_MEMBER

    def test_member_cannot_approve(self, as_user, alpha, member_membership, add_member):
        pending = add_member(alpha, 'pat@example.com', Role.PENDING_MEMBER)
        response = as_user(member_membership.user).post(members_url(pending, 'approve'))
        assert response.status_code == 403

    def test_lists_split_pending_from_active(self, as_user, alpha, owner, member_membership, add_member):
        add_member(alpha, 'pat@example.com', Role.PENDING_MEMBER)
        client = as_user(owner)

        active = client.get('/api/chapters/alpha/members/').data['results']
        pending = client.get('/api/chapters/alpha/members/pending/').data['results']

        assert {m['user']['email'] for m in active} == {'alice@example.com', 'bob@example.com'}
        assert [m['user']['email'] for m in pending] == ['pat@example.com']


class TestRoles:
    def test_promote_member_to_admin(self, as_user, owner, member_membership):
        response = as_user(owner).patch(members_url(member_membership, 'role'), {'role': 'ADMIN'}, format='json')
        assert response.status_code == 200
        member_membership.refresh_from_db()
        assert member_membership.role == Role.ADMIN

        entry = AuditLog.objects.get(action=AuditAction.MEMBER_ROLE_CHANGED)
        assert entry.details.from_role == Role.MEMBER
        assert entry.details.to_role == Role.ADMIN

    def test_cannot_assign_owner(self, as_user, owner, member_membership):
        response = as_user(owner).patch(members_url(member_membership, 'role'), {'role': 'OWNER'}, format='json')
        assert response.status_code == 400

    def test_owner_role_cannot_change(self, as_user, owner_membership, admin_membership):
        response = as_user(admin_membership.user).patch(
            members_url(owner_membership, 'role'), {'role': 'MEMBER'}, format='json'
        )
        assert response.status_code == 403
        owner_membership.refresh_from_db()
        assert owner_membership.role == Role.OWNER


class TestRemoval:
    def test_admin_removes_member(self, as_user, admin_membership, member_membership):
        response = as_user(admin_membership.user).delete(members_url(member_membership))
        assert response.status_code == 204
        assert not Membership.objects.filter(pk=member_membership.pk).exists()
        assert AuditLog.objects.filter(action=AuditAction.MEMBER_REMOVED).exists()

    def test_owner_cannot_be_removed(self, as_user, owner_membership, admin_membership):
        response = as_user(admin_membership.user).delete(members_url(owner_membership))
        assert response.status_code == 403
        assert response.data == {'error': 'Cannot remove the chapter owner'}

    def test_cannot_remove_self(self, as_user, admin_membership):
        response = as_user(admin_membership.user).delete(members_url(admin_membership))
        assert response.status_code == 403
        assert Membership.objects.filter(pk=admin_membership.pk).exists()


class TestScenarioAlpha:
    def test_create_join_approve_and_owner_protection(self, api_client, page_client):
        # A creates "alpha"
        created = api_client.post('/api/account/register/', {
            'full_name': 'Alice Owner',
            'email': 'alice@example.com',
            'chapter_slug': 'alpha',
            'password': PASSWORD,
        }, format='json')
        assert created.status_code == 201
        alice_membership = Membership.objects.get(user__email='alice@example.com')
        alice = alice_membership.user
        chapter = alice_membership.chapter

        # B joins with the code and waits for approval
        joined = api_client.post('/api/chapters/alpha/join/', {
            'full_name': 'Bob Member',
            'email': 'bob@example.com',
            'password': PASSWORD,
            'join_code': chapter.join_code,
        }, format='json')
        assert joined.status_code == 201
        bob_membership = Membership.objects.get(user__email='bob@example.com')
        assert bob_membership.role == Role.PENDING_MEMBER

        bob_pages = page_client(bob_membership.user)
        pending_portal = bob_pages.get('/alpha/portal/')
        assert pending_portal.status_code == 302
        assert pending_portal['Location'] == '/alpha/pending/'

        # The owner approves B; the portal opens up
        api_client.force_authenticate(user=alice)
        approved = api_client.post(f'/api/chapters/alpha/members/{bob_membership.pk}/approve/')
        assert approved.status_code == 200
        bob_membership.refresh_from_db()
        assert bob_membership.role == Role.MEMBER
        assert bob_pages.get('/alpha/portal/').status_code == 200

        # B, promoted to admin, still cannot remove the owner
        api_client.patch(
            f'/api/chapters/alpha/members/{bob_membership.pk}/role/', {'role': 'ADMIN'}, format='json'
        )
        api_client.force_authenticate(user=bob_membership.user)
        removed = api_client.delete(f'/api/chapters/alpha/members/{alice_membership.pk}/')
        assert removed.status_code == 403
        assert Membership.objects.filter(pk=alice_membership.pk, role=Role.OWNER).exists()
