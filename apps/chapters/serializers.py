from rest_framework import serializers

from apps.memberships.models import Membership
from .models import Chapter, slug_validator


class ChapterPublicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Chapter
        fields = ['id', 'slug', 'name', 'primary_color', 'logo_url', 'public_description', 'contact_email']


class ChapterSettingsSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=3, max_length=100)

    class Meta:
        model = Chapter
        fields = [
            'id', 'slug', 'name', 'join_code', 'primary_color', 'logo_url',
            'public_description', 'contact_email', 'stripe_customer_id',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'slug', 'join_code', 'stripe_customer_id', 'created_at', 'updated_at']


class CheckSlugSerializer(serializers.Serializer):
    slug = serializers.CharField(validators=[slug_validator])


class JoinChapterSerializer(serializers.Serializer):
    """Account fields are only required when the caller is not signed in."""
    full_name = serializers.CharField(min_length=3, max_length=150, required=False)
    email = serializers.EmailField(required=False)
    password = serializers.CharField(min_length=8, write_only=True, required=False)
    join_code = serializers.CharField()

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            return attrs
        missing = {
            name: ['This field is required.']
            for name in ('full_name', 'email', 'password')
            if not attrs.get(name)
        }
        if missing:
            raise serializers.ValidationError(missing)
        return attrs


class MembershipStatusSerializer(serializers.ModelSerializer):
    chapter = ChapterPublicSerializer(read_only=True)
    is_pending = serializers.BooleanField(read_only=True)

    class Meta:
        model = Membership
        fields = ['id', 'role', 'is_pending', 'phone', 'sms_enabled', 'chapter', 'created_at']


class PhoneSettingsSerializer(serializers.Serializer):
    phone = serializers.RegexField(
        r'^\+[1-9]\d{1,14}$',
        allow_blank=True,
        error_messages={'invalid': 'Phone number must be in E.164 format (e.g. +12125551234)'},
    )
    sms_enabled = serializers.BooleanField(default=True)
