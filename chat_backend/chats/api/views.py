"""Chats API endpoints."""

from __future__ import annotations

import logging

from django.conf import settings
from django_filters.utils import translate_validation
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from chat_backend.chats import services
from chat_backend.chats.models import Chat
from chat_backend.utils.exceptions import BadRequest

from .filters import MessageFilter
from .permissions import IsChatMember
from .serializers import ChatCreateSerializer
from .serializers import ChatDetailSerializer
from .serializers import ChatMemberChangeSerializer
from .serializers import ChatMemberSerializer
from .serializers import ChatRenameSerializer
from .serializers import ChatSerializer
from .serializers import MessageCreateSerializer
from .serializers import MessageSerializer

logger = logging.getLogger(__name__)


def _parse_limit(raw: str | None) -> int:
    default = getattr(settings, "CHAT_MESSAGES_DEFAULT_LIMIT", 50)
    maximum = getattr(settings, "CHAT_MESSAGES_MAX_LIMIT", 200)
    if raw in (None, ""):
        return default
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        msg = "limit must be an integer"
        raise BadRequest(msg) from None
    if limit < 1:
        msg = "limit must be positive"
        raise BadRequest(msg)
    return min(limit, maximum)


@extend_schema_view(
    list=extend_schema(tags=["Chats"]),
    retrieve=extend_schema(tags=["Chats"], responses=ChatDetailSerializer),
    partial_update=extend_schema(
        tags=["Chats"], request=ChatRenameSerializer, responses=ChatSerializer
    ),
    destroy=extend_schema(tags=["Chats"]),
)
class ChatViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """Chats of the authenticated user.

    - create: returns the existing 1:1 chat (200) or a new chat (201)
    - list: chats the user belongs to, most recently active first
    - retrieve: chat plus its members
    - partial_update: rename
    - messages: history (GET) / store a message (POST)
    - members: add (POST) / remove (DELETE) a member
    """

    permission_classes = [IsAuthenticated, IsChatMember]
    serializer_class = ChatSerializer
    queryset = Chat.objects.all()
    pagination_class = None

    def get_queryset(self):
        if self.action == "list":
            return Chat.objects.filter(memberships__user=self.request.user).distinct()
        if self.action == "retrieve":
            return Chat.objects.prefetch_related("memberships__user")
        return Chat.objects.all()

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ChatDetailSerializer
        return super().get_serializer_class()

    @extend_schema(
        tags=["Chats"], request=ChatCreateSerializer, responses=ChatSerializer
    )
    def create(self, request, *args, **kwargs):
        serializer = ChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        chat, created = services.resolve_or_create_chat(
            request.user.pk,
            is_group=data["is_group"],
            member_ids=data["members"],
            title=data["title"] or None,
        )
        out = ChatSerializer(chat, context={"request": request}).data
        return Response(
            out,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def partial_update(self, request, *args, **kwargs):
        chat = self.get_object()
        serializer = ChatRenameSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        chat = services.rename_chat(chat, serializer.validated_data["title"])
        return Response(ChatSerializer(chat, context={"request": request}).data)

    def perform_destroy(self, instance):
        logger.info("User %s deleted chat %s", self.request.user.pk, instance.pk)
        instance.delete()

    @extend_schema(
        methods=["GET"],
        tags=["Messages"],
        parameters=[
            OpenApiParameter("limit", int, description="Max 200, default 50"),
            OpenApiParameter("before", str, description="ISO-8601 datetime"),
        ],
        responses=MessageSerializer(many=True),
    )
    @extend_schema(
        methods=["POST"],
        tags=["Messages"],
        request=MessageCreateSerializer,
        responses=MessageSerializer,
    )
    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):
        chat = self.get_object()

        if request.method == "POST":
            serializer = MessageCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            message = services.add_message(
                chat,
                request.user.pk,
                serializer.validated_data["content"],
                serializer.validated_data["message_type"],
            )
            out = MessageSerializer(message, context={"request": request}).data
            return Response(out, status=status.HTTP_201_CREATED)

        limit = _parse_limit(request.query_params.get("limit"))
        filterset = MessageFilter(request.query_params, queryset=chat.messages.all())
        if not filterset.is_valid():
            raise translate_validation(filterset.errors)
        messages = services.latest_messages(filterset.qs, limit=limit)
        out = MessageSerializer(messages, many=True, context={"request": request}).data
        return Response(out)

    @extend_schema(
        tags=["Chats"],
        request=ChatMemberChangeSerializer,
        responses=ChatMemberSerializer,
    )
    @action(detail=True, methods=["post", "delete"])
    def members(self, request, pk=None):
        chat = self.get_object()
        serializer = ChatMemberChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = serializer.validated_data["user_id"]

        if request.method == "DELETE":
            if not services.remove_member(chat, user_id):
                msg = "Could not remove user"
                raise BadRequest(msg)
            return Response({"removed": user_id})

        membership = services.add_member(
            chat, user_id, serializer.validated_data["role"]
        )
        if membership is None:
            msg = "Could not add user"
            raise BadRequest(msg)
        return Response(ChatMemberSerializer(membership).data)
