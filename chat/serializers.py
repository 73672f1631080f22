# chat/serializers.py
from rest_framework import serializers

from .models import Conversation


class ConversationSummarySerializer(serializers.ModelSerializer):
    """Sidebar entry: no message bodies."""

    message_count = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = ["id", "title", "created_at", "updated_at", "message_count"]

    def get_message_count(self, obj):
        return len(obj.messages or [])


class ConversationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Conversation
        fields = ["id", "user_id", "title", "messages", "created_at", "updated_at"]
        read_only_fields = ["id", "user_id", "messages", "created_at", "updated_at"]


class TitleSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, allow_blank=False, trim_whitespace=True)


class SendSerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True, trim_whitespace=False)
