import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.memberships.models import Membership, Role
from apps.memberships.permissions import IsChapterAdmin
from .serializers import BroadcastSerializer
from .tasks import deliver_broadcast

logger = logging.getLogger(__name__)


def broadcast_recipients(chapter, recipient_filter, send_email, send_sms):
    """Active memberships a broadcast reaches. Pending members never do."""
    memberships = Membership.objects.filter(chapter=chapter).active()
    if recipient_filter == 'admins':
        memberships = memberships.admins()
    elif recipient_filter == 'members':
        memberships = memberships.filter(role=Role.MEMBER)

    if not send_email:
        # SMS only
        memberships = memberships.filter(sms_enabled=True).exclude(phone='')
    return memberships.filter(user__is_active=True).select_related('user')


class BroadcastView(APIView):
    """Send an announcement to chapter members by email and/or SMS."""
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def post(self, request, slug):
        serializer = BroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        chapter = request.chapter

        recipients = list(broadcast_recipients(
            chapter, data['recipient_filter'], data['send_email'], data['send_sms']
        ))
        if not recipients:
            return Response(
                {'error': 'No recipients match this broadcast'},
                status=status.HTTP_400_BAD_REQUEST
            )

        sms_capable = sum(1 for m in recipients if m.phone and m.sms_enabled)
        deliver_broadcast.delay(
            chapter.id,
            request.user.id,
            data['subject'],
            data['message'],
            data['recipient_filter'],
            [m.id for m in recipients],
            send_email=data['send_email'],
            send_sms_too=data['send_sms'],
        )
        logger.info(f"Broadcast queued for {chapter.slug} by {request.user.email} to {len(recipients)} members")

        return Response({
            'message': 'Broadcast queued for delivery.',
            'recipient_count': len(recipients),
            'email_recipients': len(recipients) if data['send_email'] else 0,
            'sms_recipients': sms_capable if data['send_sms'] else 0,
        }, status=status.HTTP_202_ACCEPTED)
