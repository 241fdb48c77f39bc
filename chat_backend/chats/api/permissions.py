"""Permission classes for Chats API."""

from rest_framework.permissions import BasePermission

from chat_backend.chats.models import Chat
from chat_backend.chats.services import is_member


class IsChatMember(BasePermission):
    """Only members of a chat may read or change it."""

    message = "Forbidden"

    def has_object_permission(self, request, view, obj) -> bool:
        user = getattr(request, "user", None)
        if not (user and getattr(user, "is_authenticated", False)):
            return False
        chat = obj if isinstance(obj, Chat) else getattr(obj, "chat", None)
        if chat is None:
            return False
        return is_member(chat, user.pk)
