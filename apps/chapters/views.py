"""
API Views for chapters: public info, join by code, settings.
"""
import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.models import AuditAction
from apps.audit.payloads import SettingsPayload
from apps.audit.services import log_audit_entry
from apps.memberships.permissions import HasChapterMembership, IsChapterAdmin, IsChapterMember
from .models import RESERVED_SLUGS, Chapter
from .serializers import (
    ChapterPublicSerializer,
    ChapterSettingsSerializer,
    CheckSlugSerializer,
    JoinChapterSerializer,
    MembershipStatusSerializer,
    PhoneSettingsSerializer,
)
from .services import join_chapter

logger = logging.getLogger(__name__)


class ChapterPublicView(generics.RetrieveAPIView):
    """Public landing-page data for a chapter."""
    queryset = Chapter.objects.all()
    serializer_class = ChapterPublicSerializer
    permission_classes = [permissions.AllowAny]
    lookup_field = 'slug'


class CheckSlugView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        serializer = CheckSlugSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        slug = serializer.validated_data['slug']
        available = slug not in RESERVED_SLUGS and not Chapter.objects.filter(slug=slug).exists()
        return Response({'slug': slug, 'available': available})


class JoinChapterView(APIView):
    """
    Request membership with the chapter's join code.

    Creates the account when the email is new. The new membership starts as
    PENDING_MEMBER until an admin approves it.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, slug):
        chapter = get_object_or_404(Chapter, slug=slug)

        serializer = JoinChapterSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        membership = join_chapter(
            chapter,
            data.get('full_name'),
            data.get('email'),
            data.get('password'),
            data['join_code'],
            user=request.user if request.user.is_authenticated else None,
        )

        return Response({
            'message': 'Your request to join has been submitted and is pending approval',
            'is_pending': True,
            'membership_id': membership.pk,
        }, status=status.HTTP_201_CREATED)


class MembershipStatusView(APIView):
    """The caller's own membership in a chapter; open to pending members."""
    permission_classes = [permissions.IsAuthenticated, HasChapterMembership]

    def get(self, request, slug):
        return Response(MembershipStatusSerializer(request.membership).data)


class PhoneSettingsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterMember]

    def patch(self, request, slug):
        serializer = PhoneSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        membership = request.membership
        membership.phone = serializer.validated_data['phone']
        membership.sms_enabled = bool(membership.phone) and serializer.validated_data['sms_enabled']
        membership.save(update_fields=['phone', 'sms_enabled', 'updated_at'])
        return Response(MembershipStatusSerializer(membership).data)


class ChapterSettingsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def get(self, request, slug):
        return Response(ChapterSettingsSerializer(request.chapter).data)

    def patch(self, request, slug):
        serializer = ChapterSettingsSerializer(request.chapter, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        chapter = serializer.save()

        log_audit_entry(
            chapter, request.user, AuditAction.CHAPTER_SETTINGS_UPDATED, 'CHAPTER', chapter.pk,
            SettingsPayload(changed_fields=tuple(sorted(serializer.validated_data))),
        )
        return Response(ChapterSettingsSerializer(chapter).data)


class RegenerateJoinCodeView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def post(self, request, slug):
        join_code = request.chapter.regenerate_join_code()
        log_audit_entry(
            request.chapter, request.user, AuditAction.JOIN_CODE_REGENERATED, 'CHAPTER', request.chapter.pk,
            SettingsPayload(changed_fields=('join_code',)),
        )
        logger.info(f"Join code regenerated for {request.chapter.slug} by {request.user.email}")
        return Response({'join_code': join_code})
