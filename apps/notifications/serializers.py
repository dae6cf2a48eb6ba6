from rest_framework import serializers

RECIPIENT_FILTERS = ('all', 'admins', 'members')


class BroadcastSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=100)
    message = serializers.CharField(max_length=5000)
    recipient_filter = serializers.ChoiceField(choices=RECIPIENT_FILTERS, default='all')
    send_email = serializers.BooleanField(default=True)
    send_sms = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if not attrs['send_email'] and not attrs['send_sms']:
            raise serializers.ValidationError('Choose email, SMS or both.')
        return attrs
