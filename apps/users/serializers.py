"""
Serializers for User model and account flows.
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from apps.chapters.models import RESERVED_SLUGS, Chapter, slug_validator

User = get_user_model()


class RegisterChapterSerializer(serializers.Serializer):
    """Sign up and create a new chapter owned by the new user."""
    full_name = serializers.CharField(min_length=3, max_length=150)
    email = serializers.EmailField()
    chapter_slug = serializers.CharField(min_length=3, max_length=30, validators=[slug_validator])
    password = serializers.CharField(min_length=8, write_only=True)

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('An account with this email already exists.')
        return value

    def validate_chapter_slug(self, value):
        if value in RESERVED_SLUGS or Chapter.objects.filter(slug=value).exists():
            raise serializers.ValidationError('This chapter URL is already taken.')
        return value


class UserProfileSerializer(serializers.ModelSerializer):
    """Serializer for user profile."""
    pk = serializers.IntegerField(source='id', read_only=True)

    class Meta:
        model = User
        fields = ['pk', 'id', 'email', 'name', 'image', 'created_at', 'updated_at']
        read_only_fields = ['pk', 'id', 'email', 'created_at', 'updated_at']


class ChangePasswordSerializer(serializers.Serializer):
    """Serializer for password change."""
    old_password = serializers.CharField(required=True)
    new_password = serializers.CharField(required=True, validators=[validate_password])

    def validate_old_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError("Old password is incorrect.")
        return value


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetTokenSerializer(serializers.Serializer):
    token = serializers.CharField()


class ResetPasswordSerializer(ResetTokenSerializer):
    password = serializers.CharField(min_length=8, max_length=100, write_only=True)

    def validate_password(self, value):
        if not any(c.isupper() for c in value):
            raise serializers.ValidationError('Password must contain at least one uppercase letter.')
        if not any(c.islower() for c in value):
            raise serializers.ValidationError('Password must contain at least one lowercase letter.')
        if not any(c.isdigit() for c in value):
            raise serializers.ValidationError('Password must contain at least one number.')
        return value


class UserMembershipSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    role = serializers.CharField()
    chapter_id = serializers.IntegerField()
    chapter_slug = serializers.CharField(source='chapter.slug')
    chapter_name = serializers.CharField(source='chapter.name')
