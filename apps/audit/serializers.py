from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True, default=None)
    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'action', 'target_type', 'target_id', 'payload',
            'user', 'user_name', 'user_email', 'created_at',
        ]
        read_only_fields = fields
