"""
API Views for chapter events and RSVPs.
"""
import logging

from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.models import AuditAction
from apps.audit.payloads import EventPayload
from apps.audit.services import log_audit_entry
from apps.memberships.permissions import IsChapterAdmin, IsChapterMember
from .models import Event, EventRSVP
from .serializers import EventSerializer, RSVPSerializer, RSVPUpdateSerializer

logger = logging.getLogger(__name__)


class EventPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'limit'
    max_page_size = 100


def chapter_events(chapter):
    return (
        Event.objects
        .filter(chapter=chapter)
        .select_related('created_by')
        .annotate(going_count=Count('rsvps', filter=Q(rsvps__status=EventRSVP.Status.GOING)))
    )


def event_payload(event):
    return EventPayload(title=event.title, starts_at=event.start_date.isoformat())


class MemberReadAdminWriteMixin:
    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated(), IsChapterMember()]
        return [permissions.IsAuthenticated(), IsChapterAdmin()]


class EventListCreateView(MemberReadAdminWriteMixin, generics.ListCreateAPIView):
    serializer_class = EventSerializer
    pagination_class = EventPagination

    def get_queryset(self):
        queryset = chapter_events(self.request.chapter)
        event_status = self.request.query_params.get('status')
        if event_status in Event.Status.values:
            queryset = queryset.filter(status=event_status)
        return queryset

    def perform_create(self, serializer):
        event = serializer.save(chapter=self.request.chapter, created_by=self.request.user)
        log_audit_entry(
            self.request.chapter, self.request.user, AuditAction.EVENT_CREATED, 'EVENT', event.pk,
            event_payload(event),
        )
        logger.info(f"Event {event.pk} created in {self.request.chapter.slug}")


class EventDetailView(MemberReadAdminWriteMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = EventSerializer

    def get_queryset(self):
        return chapter_events(self.request.chapter)

    def perform_update(self, serializer):
        event = serializer.save()
        log_audit_entry(
            self.request.chapter, self.request.user, AuditAction.EVENT_UPDATED, 'EVENT', event.pk,
            event_payload(event),
        )

    def perform_destroy(self, instance):
        payload = event_payload(instance)
        event_id = instance.pk
        instance.delete()
        log_audit_entry(
            self.request.chapter, self.request.user, AuditAction.EVENT_DELETED, 'EVENT', event_id, payload,
        )


class EventRSVPView(APIView):
    """List RSVPs for an event, or set/clear the caller's own RSVP."""
    permission_classes = [permissions.IsAuthenticated, IsChapterMember]

    def get_event(self, pk):
        return get_object_or_404(Event, pk=pk, chapter=self.request.chapter)

    def get(self, request, slug, pk):
        event = self.get_event(pk)
        rsvps = event.rsvps.select_related('user')
        counts = rsvps.aggregate(
            going=Count('id', filter=Q(status=EventRSVP.Status.GOING)),
            not_going=Count('id', filter=Q(status=EventRSVP.Status.NOT_GOING)),
            maybe=Count('id', filter=Q(status=EventRSVP.Status.MAYBE)),
        )
        mine = rsvps.filter(user=request.user).first()

        paginator = EventPagination()
        page = paginator.paginate_queryset(rsvps, request, view=self)
        return Response({
            'counts': counts,
            'my_status': mine.status if mine else None,
            'count': paginator.page.paginator.count,
            'results': RSVPSerializer(page, many=True).data,
        })

    def post(self, request, slug, pk):
        serializer = RSVPUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']

        with transaction.atomic():
            event = get_object_or_404(Event.objects.select_for_update(), pk=pk, chapter=request.chapter)
            if not event.accepts_rsvps:
                return Response({'error': 'This event is no longer accepting RSVPs'}, status=status.HTTP_400_BAD_REQUEST)

            current = EventRSVP.objects.filter(event=event, user=request.user).first()
            already_going = current is not None and current.status == EventRSVP.Status.GOING
            if new_status == EventRSVP.Status.GOING and event.capacity and not already_going:
                going = event.rsvps.filter(status=EventRSVP.Status.GOING).count()
                if going >= event.capacity:
                    return Response({'error': 'Event has reached capacity'}, status=status.HTTP_400_BAD_REQUEST)

            rsvp, created = EventRSVP.objects.update_or_create(
                event=event,
                user=request.user,
                defaults={'status': new_status},
            )

        return Response(
            RSVPSerializer(rsvp).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def delete(self, request, slug, pk):
        event = self.get_event(pk)
        deleted, _ = EventRSVP.objects.filter(event=event, user=request.user).delete()
        if not deleted:
            return Response({'error': 'You have not responded to this event'}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
