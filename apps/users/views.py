"""
API Views for accounts: sign-up, profile, password reset.
"""
import logging

from allauth.socialaccount.providers.google.views import GoogleOAuth2Adapter
from allauth.socialaccount.providers.oauth2.client import OAuth2Client
from dj_rest_auth.registration.views import SocialLoginView
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.chapters.models import Chapter
from apps.core.db import atomic_with_retry
from apps.memberships.models import Membership, Role
from apps.payments.models import Plan, Subscription
from .passwords import complete_password_reset, find_reset_token, request_password_reset
from .serializers import (
    ChangePasswordSerializer,
    ForgotPasswordSerializer,
    RegisterChapterSerializer,
    ResetPasswordSerializer,
    ResetTokenSerializer,
    UserMembershipSerializer,
    UserProfileSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()

RESET_REQUESTED_MESSAGE = "If an account with that email exists, we've sent password reset instructions."


@atomic_with_retry
def create_chapter_with_owner(full_name, email, password, slug):
    user = User.objects.create_user(email=email, password=password, name=full_name)
    chapter = Chapter.objects.create(
        slug=slug,
        name=f"{user.first_name_or_email}'s Chapter",
        contact_email=email,
    )
    membership = Membership.objects.create(user=user, chapter=chapter, role=Role.OWNER)
    Subscription.objects.create(chapter=chapter, plan=Plan.FREE, status=Subscription.Status.ACTIVE)
    return user, chapter, membership


class RegisterView(APIView):
    """Sign up and create a chapter owned by the new account."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegisterChapterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user, chapter, membership = create_chapter_with_owner(
            data['full_name'], data['email'], data['password'], data['chapter_slug'],
        )
        logger.info(f"Chapter {chapter.slug} created by {user.email}")

        return Response({
            'message': 'Chapter created successfully.',
            'user': UserProfileSerializer(user).data,
            'chapter': {'id': chapter.id, 'slug': chapter.slug, 'name': chapter.name},
            'role': membership.role,
        }, status=status.HTTP_201_CREATED)


class ProfileView(generics.RetrieveUpdateAPIView):
    """Get or update current user's profile."""
    serializer_class = UserProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


class ChangePasswordView(APIView):
    """Change password endpoint."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)

        request.user.set_password(serializer.validated_data['new_password'])
        request.user.save()

        return Response({'message': 'Password changed successfully.'})


class ForgotPasswordView(APIView):
    """
    Start a password reset. The response is identical whether or not the
    email belongs to an account.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        request_password_reset(serializer.validated_data['email'])
        return Response({'message': RESET_REQUESTED_MESSAGE})


class VerifyResetTokenView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ResetTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response({'valid': find_reset_token(serializer.validated_data['token']) is not None})


class ResetPasswordView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = complete_password_reset(
            serializer.validated_data['token'], serializer.validated_data['password']
        )
        if user is None:
            return Response({'error': 'Invalid or expired reset token'}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'message': 'Password has been reset. You can now sign in.'})


class MyMembershipsView(APIView):
    """Every chapter the caller belongs to, oldest membership first."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        memberships = Membership.objects.filter(user=request.user).select_related('chapter')
        return Response(UserMembershipSerializer(memberships, many=True).data)


class GoogleLoginView(SocialLoginView):
    adapter_class = GoogleOAuth2Adapter
    client_class = OAuth2Client
    callback_url = settings.GOOGLE_CALLBACK_URL
