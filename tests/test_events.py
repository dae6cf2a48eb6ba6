from datetime import timedelta

import pytest
from django.utils import timezone

from apps.audit.models import AuditAction, AuditLog
from apps.chapters.models import Chapter
from apps.events.models import Event, EventRSVP
from apps.memberships.models import Role

EVENTS_URL = '/api/chapters/alpha/events/'


def event_data(**overrides):
    start = timezone.now() + timedelta(days=7)
    data = {
        'title': 'Chapter meeting',
        'description': 'Weekly chapter meeting in the house library.',
        'location': 'Chapter house',
        'start_date': start.isoformat(),
        'end_date': (start + timedelta(hours=2)).isoformat(),
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_event(alpha, owner):
    def _make_event(**kwargs):
        start = timezone.now() + timedelta(days=3)
        defaults = dict(
            chapter=alpha, title='Formal', description='Spring formal at the hotel ballroom.',
            location='Downtown', start_date=start, end_date=start + timedelta(hours=4), created_by=owner,
        )
        defaults.update(kwargs)
        return Event.objects.create(**defaults)
    return _make_event


class TestEventCrud:
    def test_admin_creates_event(self, as_user, admin_membership):
        response = as_user(admin_membership.user).post(EVENTS_URL, event_data(capacity=25), format='json')

        assert response.status_code == 201
        assert response.data['capacity'] == 25
        assert response.data['status'] == Event.Status.UPCOMING
        assert response.data['going_count'] == 0
        assert AuditLog.objects.filter(action=AuditAction.EVENT_CREATED).count() == 1

    def test_members_cannot_create(self, as_user, member_membership):
        response = as_user(member_membership.user).post(EVENTS_URL, event_data(), format='json')
        assert response.status_code == 403

    def test_start_must_be_in_future(self, as_user, owner):
        past = timezone.now() - timedelta(days=1)
        response = as_user(owner).post(EVENTS_URL, event_data(
            start_date=past.isoformat(), end_date=(past + timedelta(hours=1)).isoformat(),
        ), format='json')
        assert response.status_code == 400
        assert 'start_date' in response.data['errors']

    def test_end_must_follow_start(self, as_user, owner):
        start = timezone.now() + timedelta(days=2)
        response = as_user(owner).post(EVENTS_URL, event_data(
            start_date=start.isoformat(), end_date=(start - timedelta(hours=1)).isoformat(),
        ), format='json')
        assert response.status_code == 400
        assert response.data['errors']['end_date'] == ['End date must be after the start date.']

    def test_short_fields_rejected(self, as_user, owner):
        response = as_user(owner).post(EVENTS_URL, event_data(title='Hi', description='short'), format='json')
        assert response.status_code == 400
        assert {'title', 'description'} <= set(response.data['errors'])

    def test_zero_capacity_means_unlimited(self, as_user, owner):
        response = as_user(owner).post(EVENTS_URL, event_data(capacity=0), format='json')
        assert response.data['capacity'] is None

    def test_member_lists_events_with_status_filter(self, as_user, member_membership, make_event):
        make_event(title='Formal')
        make_event(title='Retreat', status=Event.Status.CANCELED)

        client = as_user(member_membership.user)
        all_events = client.get(EVENTS_URL)
        canceled = client.get(EVENTS_URL, {'status': 'CANCELED'})

        assert all_events.data['count'] == 2
        assert [e['title'] for e in canceled.data['results']] == ['Retreat']

    def test_event_of_other_chapter_is_404(self, as_user, owner):
        from_other = Event.objects.create(
            chapter=Chapter.objects.create(slug='beta', name='Beta'), title='Mixer', description='Mixer with the other chapter.',
            location='Quad', start_date=timezone.now() + timedelta(days=1),
            end_date=timezone.now() + timedelta(days=1, hours=2),
        )
        assert as_user(owner).get(f'{EVENTS_URL}{from_other.pk}/').status_code == 404

    def test_delete_audits(self, as_user, owner, make_event):
        event = make_event()
        assert as_user(owner).delete(f'{EVENTS_URL}{event.pk}/').status_code == 204
        log = AuditLog.objects.get(action=AuditAction.EVENT_DELETED)
        assert log.target_id == str(event.pk)


class TestRSVP:
    def rsvp(self, client, event, status):
        return client.post(f'{EVENTS_URL}{event.pk}/rsvp/', {'status': status}, format='json')

    def test_capacity_is_enforced(self, as_user, owner, member_membership, make_event):
        event = make_event(capacity=1)

        first = self.rsvp(as_user(owner), event, 'GOING')
        assert first.status_code == 201

        second = self.rsvp(as_user(member_membership.user), event, 'GOING')
        assert second.status_code == 400
        assert second.data['error'] == 'Event has reached capacity'

        maybe = self.rsvp(as_user(member_membership.user), event, 'MAYBE')
        assert maybe.status_code == 201
        assert event.rsvps.filter(status=EventRSVP.Status.GOING).count() == 1

    def test_repeat_rsvp_updates_in_place(self, as_user, owner, make_event):
        event = make_event(capacity=1)
        client = as_user(owner)

        assert self.rsvp(client, event, 'GOING').status_code == 201
        again = self.rsvp(client, event, 'GOING')
        assert again.status_code == 200
        assert self.rsvp(client, event, 'NOT_GOING').data['status'] == 'NOT_GOING'
        assert EventRSVP.objects.filter(event=event).count() == 1

    def test_canceled_event_refuses_rsvps(self, as_user, owner, make_event):
        event = make_event(status=Event.Status.CANCELED)
        response = self.rsvp(as_user(owner), event, 'GOING')
        assert response.status_code == 400

    def test_pending_member_cannot_rsvp(self, as_user, alpha, add_member, make_event):
        pending = add_member(alpha, 'pete@example.com', role=Role.PENDING_MEMBER)
        assert self.rsvp(as_user(pending.user), make_event(), 'GOING').status_code == 403

    def test_counts_and_own_status(self, as_user, owner, member_membership, admin_membership, make_event):
        event = make_event()
        self.rsvp(as_user(owner), event, 'GOING')
        self.rsvp(as_user(admin_membership.user), event, 'MAYBE')
        self.rsvp(as_user(member_membership.user), event, 'GOING')

        response = as_user(member_membership.user).get(f'{EVENTS_URL}{event.pk}/rsvp/')

        assert response.status_code == 200
        assert response.data['counts'] == {'going': 2, 'not_going': 0, 'maybe': 1}
        assert response.data['my_status'] == 'GOING'
        assert response.data['count'] == 3

    def test_clear_rsvp(self, as_user, owner, make_event):
        event = make_event()
        client = as_user(owner)
        self.rsvp(client, event, 'GOING')

        assert client.delete(f'{EVENTS_URL}{event.pk}/rsvp/').status_code == 204
        assert client.delete(f'{EVENTS_URL}{event.pk}/rsvp/').status_code == 404
