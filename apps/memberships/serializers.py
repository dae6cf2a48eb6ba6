from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import ASSIGNABLE_ROLES, Invite, Membership, Role

User = get_user_model()


class MemberUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'image']


class MembershipSerializer(serializers.ModelSerializer):
    user = MemberUserSerializer(read_only=True)

    class Meta:
        model = Membership
        fields = ['id', 'role', 'user', 'phone', 'sms_enabled', 'created_at', 'updated_at']
        read_only_fields = fields


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[(r.value, r.label) for r in ASSIGNABLE_ROLES])


class InviteSerializer(serializers.ModelSerializer):
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)
    status = serializers.SerializerMethodField()

    class Meta:
        model = Invite
        fields = [
            'id', 'email', 'role', 'created_by_email', 'created_at', 'expires_at',
            'accepted', 'accepted_at', 'status',
        ]
        read_only_fields = fields

    def get_status(self, obj):
        if obj.accepted:
            return 'accepted'
        if obj.is_expired:
            return 'expired'
        return 'pending'


class InviteCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(
        choices=[(r.value, r.label) for r in ASSIGNABLE_ROLES],
        default=Role.MEMBER,
    )

    def validate_email(self, value):
        return value.strip().lower()


class InviteAcceptSerializer(serializers.Serializer):
    invite_token = serializers.CharField()
    email = serializers.EmailField()
    full_name = serializers.CharField(min_length=3, max_length=150, required=False, allow_blank=True)
    password = serializers.CharField(min_length=8, write_only=True)
