from __future__ import annotations

from typing import Any

from rest_framework import serializers

from chat_backend.chats.models import Chat
from chat_backend.chats.models import ChatMembership
from chat_backend.chats.models import Message


class ChatSerializer(serializers.ModelSerializer):
    class Meta:
        model = Chat
        fields = ("id", "title", "is_group", "created_by", "created_at", "updated_at")
        read_only_fields = fields


class ChatMemberSerializer(serializers.ModelSerializer):
    """A member row as the frontend shows it: the user plus their chat role."""

    id = serializers.IntegerField(source="user.id", read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = ChatMembership
        fields = ("id", "name", "email", "role", "joined_at")
        read_only_fields = fields


class ChatDetailSerializer(ChatSerializer):
    members = ChatMemberSerializer(source="memberships", many=True, read_only=True)

    class Meta(ChatSerializer.Meta):
        fields = (*ChatSerializer.Meta.fields, "members")
        read_only_fields = fields


class ChatCreateSerializer(serializers.Serializer):
    title = serializers.CharField(
        max_length=255, required=False, allow_null=True, allow_blank=True, default=None
    )
    is_group = serializers.BooleanField(required=False, default=False)
    members = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )


class ChatRenameSerializer(serializers.Serializer):
    title = serializers.CharField(
        max_length=255,
        error_messages={"required": "title required", "blank": "title required"},
    )


class MessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.CharField(
        source="sender.name", read_only=True, allow_null=True, default=None
    )

    class Meta:
        model = Message
        fields = (
            "id",
            "chat",
            "sender",
            "sender_name",
            "content",
            "message_type",
            "created_at",
        )
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, default="")
    message_type = serializers.ChoiceField(
        choices=Message.Type.choices,
        required=False,
        default=Message.Type.TEXT,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["message_type"] == Message.Type.TEXT and not attrs["content"].strip():
            msg = "Message content required"
            raise serializers.ValidationError({"content": msg})
        return attrs


class ChatMemberChangeSerializer(serializers.Serializer):
    """Body of the add/remove member endpoints.

    Accepts ``userId`` (frontend) or ``user_id``.
    """

    user_id = serializers.IntegerField(
        min_value=1, error_messages={"required": "userId required"}
    )
    role = serializers.ChoiceField(
        choices=ChatMembership.Role.choices,
        required=False,
        default=ChatMembership.Role.MEMBER,
    )

    def to_internal_value(self, data):
        if hasattr(data, "get") and "user_id" not in data and "userId" in data:
            data = {**dict(data.items()), "user_id": data.get("userId")}
        return super().to_internal_value(data)
