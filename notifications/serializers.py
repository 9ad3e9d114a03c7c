from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    priority_display = serializers.CharField(source='get_priority_display', read_only=True)
    sender_name = serializers.CharField(source='sender.name', read_only=True, default=None)

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'type_display', 'priority', 'priority_display',
            'title', 'message', 'data', 'action_url',
            'related_entity_type', 'related_entity_id',
            'sender', 'sender_name', 'is_read', 'read_at', 'expires_at', 'created_at',
        ]
        read_only_fields = fields
