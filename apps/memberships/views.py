"""
API Views for chapter members and invitations.
"""
import logging
import uuid

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.models import AuditAction
from apps.audit.payloads import InvitePayload, MemberPayload, RoleChangePayload
from apps.audit.services import log_audit_entry
from apps.notifications.tasks import send_templated_email
from .access import ensure_can_change_role, ensure_can_remove
from .models import Invite, Membership, Role
from .permissions import IsChapterAdmin
from .serializers import (
    InviteAcceptSerializer,
    InviteCreateSerializer,
    InviteSerializer,
    MembershipSerializer,
    RoleUpdateSerializer,
)
from .services import accept_invite, find_open_invite

logger = logging.getLogger(__name__)


def get_chapter_membership(chapter, pk):
    """A membership of ``chapter``; memberships of other chapters are 404."""
    return get_object_or_404(Membership.objects.select_related('user'), pk=pk, chapter=chapter)


class MemberListView(generics.ListAPIView):
    serializer_class = MembershipSerializer
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def get_queryset(self):
        return Membership.objects.filter(chapter=self.request.chapter).active().select_related('user')


class PendingMemberListView(MemberListView):
    def get_queryset(self):
        return Membership.objects.filter(chapter=self.request.chapter).pending().select_related('user')


class ApproveMemberView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def post(self, request, slug, pk):
        membership = get_chapter_membership(request.chapter, pk)
        if not membership.is_pending:
            return Response({'error': 'This membership is not pending approval'}, status=status.HTTP_400_BAD_REQUEST)

        membership.role = Role.MEMBER
        membership.save(update_fields=['role', 'updated_at'])

        log_audit_entry(
            request.chapter, request.user, AuditAction.MEMBER_APPROVED, 'MEMBERSHIP', membership.pk,
            MemberPayload(email=membership.user.email, name=membership.user.name),
        )
        send_templated_email.delay(membership.user.email, 'member_approval', {
            'chapter_name': request.chapter.name,
            'member_name': membership.user.display_name,
            'portal_link': f"{settings.APP_URL}/{request.chapter.slug}/portal/",
        })
        logger.info(f"{request.user.email} approved {membership.user.email} in {request.chapter.slug}")
        return Response({'message': 'Member approved', 'membership': MembershipSerializer(membership).data})


class DenyMemberView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def post(self, request, slug, pk):
        membership = get_chapter_membership(request.chapter, pk)
        if not membership.is_pending:
            return Response({'error': 'This membership is not pending approval'}, status=status.HTTP_400_BAD_REQUEST)

        payload = MemberPayload(email=membership.user.email, name=membership.user.name)
        membership_id = membership.pk
        membership.delete()

        log_audit_entry(
            request.chapter, request.user, AuditAction.MEMBER_DENIED, 'MEMBERSHIP', membership_id, payload,
        )
        logger.info(f"{request.user.email} denied {payload.email} in {request.chapter.slug}")
        return Response({'message': 'Membership request denied'})


class MemberRoleView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def patch(self, request, slug, pk):
        membership = get_chapter_membership(request.chapter, pk)
        ensure_can_change_role(request.membership, membership)
        if membership.is_pending:
            return Response({'error': 'Approve this member before changing their role'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_role = serializer.validated_data['role']

        previous = membership.role
        membership.role = new_role
        membership.save(update_fields=['role', 'updated_at'])

        log_audit_entry(
            request.chapter, request.user, AuditAction.MEMBER_ROLE_CHANGED, 'MEMBERSHIP', membership.pk,
            RoleChangePayload(email=membership.user.email, from_role=previous, to_role=new_role),
        )
        return Response(MembershipSerializer(membership).data)


class MemberDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def delete(self, request, slug, pk):
        membership = get_chapter_membership(request.chapter, pk)
        ensure_can_remove(request.membership, membership)

        payload = MemberPayload(email=membership.user.email, name=membership.user.name)
        membership_id = membership.pk
        membership.delete()

        log_audit_entry(
            request.chapter, request.user, AuditAction.MEMBER_REMOVED, 'MEMBERSHIP', membership_id, payload,
        )
        logger.info(f"{request.user.email} removed {payload.email} from {request.chapter.slug}")
        return Response(status=status.HTTP_204_NO_CONTENT)


def send_invite_email(invite, inviter):
    send_templated_email.delay(invite.email, 'chapter_invite', {
        'chapter_name': invite.chapter.name,
        'inviter_name': inviter.display_name,
        'role_name': invite.get_role_display(),
        'invite_link': f"{settings.APP_URL}/{invite.chapter.slug}/join/?token={invite.token}",
    })


class InviteListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def get(self, request, slug):
        invites = Invite.objects.filter(chapter=request.chapter, accepted=False).select_related('created_by')
        return Response(InviteSerializer(invites, many=True).data)

    def post(self, request, slug):
        serializer = InviteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        role = serializer.validated_data['role']
        chapter = request.chapter

        if Membership.objects.filter(chapter=chapter, user__email__iexact=email).exists():
            return Response({'error': 'This person is already a member of the chapter'}, status=status.HTTP_400_BAD_REQUEST)
        if Invite.objects.active().filter(chapter=chapter, email__iexact=email).exists():
            return Response({'error': 'An active invite already exists for this email'}, status=status.HTTP_400_BAD_REQUEST)

        invite = Invite.objects.create(
            chapter=chapter,
            email=email,
            role=role,
            token=str(uuid.uuid4()),
            created_by=request.user,
            expires_at=Invite.default_expiry(),
        )
        send_invite_email(invite, request.user)
        log_audit_entry(
            chapter, request.user, AuditAction.INVITE_CREATED, 'INVITE', invite.pk,
            InvitePayload(email=invite.email, role=invite.role),
        )
        logger.info(f"{request.user.email} invited {email} to {chapter.slug} as {role}")
        return Response(InviteSerializer(invite).data, status=status.HTTP_201_CREATED)


class InviteDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def delete(self, request, slug, pk):
        invite = get_object_or_404(Invite, pk=pk, chapter=request.chapter)
        payload = InvitePayload(email=invite.email, role=invite.role)
        invite_id = invite.pk
        invite.delete()

        log_audit_entry(request.chapter, request.user, AuditAction.INVITE_DELETED, 'INVITE', invite_id, payload)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ResendInviteView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def post(self, request, slug, pk):
        invite = get_object_or_404(Invite, pk=pk, chapter=request.chapter)
        if invite.accepted:
            return Response({'error': 'This invite has already been accepted'}, status=status.HTTP_400_BAD_REQUEST)

        invite.expires_at = Invite.default_expiry()
        invite.save(update_fields=['expires_at'])
        send_invite_email(invite, request.user)

        log_audit_entry(
            request.chapter, request.user, AuditAction.INVITE_RESENT, 'INVITE', invite.pk,
            InvitePayload(email=invite.email, role=invite.role),
        )
        return Response(InviteSerializer(invite).data)


class ValidateInviteView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        token = request.query_params.get('token')
        if not token:
            return Response({'valid': False, 'error': 'Token is required'}, status=status.HTTP_400_BAD_REQUEST)

        invite = find_open_invite(token, request.query_params.get('chapter_slug'))
        return Response({
            'valid': True,
            'email': invite.email,
            'role': invite.role,
            'chapter': {'slug': invite.chapter.slug, 'name': invite.chapter.name},
            'expires_at': invite.expires_at,
        })


class AcceptInviteView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = InviteAcceptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        membership = accept_invite(
            data['invite_token'], data['email'], data['password'], data.get('full_name', ''),
        )
        return Response({
            'message': 'Invitation accepted. Please login.',
            'chapter_slug': membership.chapter.slug,
            'role': membership.role,
        }, status=status.HTTP_201_CREATED)
