from django.utils import timezone
from rest_framework import serializers

from apps.memberships.serializers import MemberUserSerializer
from .models import Event, EventRSVP


class EventSerializer(serializers.ModelSerializer):
    title = serializers.CharField(min_length=3, max_length=100)
    description = serializers.CharField(min_length=10, max_length=5000)
    location = serializers.CharField(min_length=3, max_length=200)
    capacity = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    going_count = serializers.IntegerField(read_only=True, default=0)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = Event
        fields = [
            'id', 'title', 'description', 'location', 'start_date', 'end_date',
            'capacity', 'is_public', 'status', 'going_count', 'created_by_name',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'going_count', 'created_by_name', 'created_at', 'updated_at']

    def validate_capacity(self, value):
        # 0 means no limit
        return value or None

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        now = timezone.now()

        if 'start_date' in attrs and attrs['start_date'] <= now:
            raise serializers.ValidationError({'start_date': ['Start date must be in the future.']})
        if 'end_date' in attrs and attrs['end_date'] <= now:
            raise serializers.ValidationError({'end_date': ['End date must be in the future.']})
        if start and end and end <= start:
            raise serializers.ValidationError({'end_date': ['End date must be after the start date.']})
        return attrs


class RSVPSerializer(serializers.ModelSerializer):
    user = MemberUserSerializer(read_only=True)

    class Meta:
        model = EventRSVP
        fields = ['id', 'user', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']


class RSVPUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=EventRSVP.Status.choices)
