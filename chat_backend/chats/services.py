"""Chat persistence rules used by the REST API.

``resolve_or_create_chat`` is the only place that decides whether a chat
creation request reuses an existing 1:1 chat or inserts a new one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from chat_backend.chats.models import Chat
from chat_backend.chats.models import ChatMembership
from chat_backend.chats.models import Message
from chat_backend.utils.exceptions import BadRequest
from chat_backend.utils.exceptions import StorageError

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterable

    from django.db.models import QuerySet

logger = logging.getLogger(__name__)

User = get_user_model()

DIRECT_CHAT_SIZE = 2


def normalize_member_ids(creator_id: int, member_ids: Iterable[Any]) -> set[int]:
    """Return the unique member ids, always including the creator."""

    ids: set[int] = {int(creator_id)}
    for raw in member_ids:
        if isinstance(raw, bool) or raw is None:
            msg = f"Invalid member id: {raw!r}"
            raise BadRequest(msg)
        if isinstance(raw, int):
            ids.add(raw)
            continue
        if isinstance(raw, str) and raw.strip().isdigit():
            ids.add(int(raw.strip()))
            continue
        msg = f"Invalid member id: {raw!r}"
        raise BadRequest(msg)
    return ids


def find_direct_chat(creator_id: int, member_ids: set[int]) -> Chat | None:
    """First non-group chat of ``creator_id`` whose members are exactly ``member_ids``."""

    candidates = (
        Chat.objects.filter(memberships__user_id=creator_id, is_group=False)
        .prefetch_related("memberships")
        .distinct()
    )
    for chat in candidates:
        chat_member_ids = {m.user_id for m in chat.memberships.all()}
        if chat_member_ids == member_ids:
            return chat
    return None


def _lock_members(member_ids: set[int]) -> None:
    # Row locks in id order serialize concurrent requests for the same people.
    found = set(
        User.objects.select_for_update()
        .filter(pk__in=member_ids)
        .order_by("pk")
        .values_list("pk", flat=True),
    )
    missing = sorted(member_ids - found)
    if missing:
        msg = f"User not found: {', '.join(str(pk) for pk in missing)}"
        raise NotFound(msg)


def resolve_or_create_chat(
    creator_id: int,
    *,
    is_group: bool = False,
    member_ids: Iterable[Any] = (),
    title: str | None = None,
) -> tuple[Chat, bool]:
    """Return ``(chat, created)``.

    A non-group request for exactly two people returns their existing 1:1 chat
    when there is one. Everything else creates a chat plus one membership per
    member (creator ``admin``, others ``member``) in a single transaction.
    """

    members = normalize_member_ids(creator_id, member_ids)
    logger.info("User %s resolving chat with members %s", creator_id, sorted(members))

    try:
        with transaction.atomic():
            _lock_members(members)

            if not is_group and len(members) == DIRECT_CHAT_SIZE:
                existing = find_direct_chat(creator_id, members)
                if existing is not None:
                    logger.info("Found existing 1:1 chat %s", existing.pk)
                    return existing, False

            chat = Chat.objects.create(
                title=title,
                is_group=is_group,
                created_by_id=creator_id,
            )
            for user_id in sorted(members):
                role = (
                    ChatMembership.Role.ADMIN
                    if user_id == creator_id
                    else ChatMembership.Role.MEMBER
                )
                ChatMembership.objects.create(chat=chat, user_id=user_id, role=role)
    except DatabaseError as exc:
        logger.exception("Chat creation failed for user %s", creator_id)
        raise StorageError from exc

    logger.info("Created chat %s with %d members", chat.pk, len(members))
    return chat, True


def is_member(chat: Chat, user_id: int) -> bool:
    return ChatMembership.objects.filter(chat=chat, user_id=user_id).exists()


def add_message(
    chat: Chat,
    sender_id: int,
    content: str,
    message_type: str = Message.Type.TEXT,
) -> Message:
    """Persist a message and bump the chat's ``updated_at`` atomically."""

    try:
        with transaction.atomic():
            message = Message.objects.create(
                chat=chat,
                sender_id=sender_id,
                content=content,
                message_type=message_type,
            )
            Chat.objects.filter(pk=chat.pk).update(updated_at=timezone.now())
    except DatabaseError as exc:
        logger.exception("Storing message in chat %s failed", chat.pk)
        raise StorageError from exc
    return message


def latest_messages(messages: QuerySet[Message], *, limit: int) -> list[Message]:
    """The newest ``limit`` messages of ``messages``, oldest first."""

    newest_first = list(
        messages.select_related("sender").order_by("-created_at", "-id")[:limit],
    )
    newest_first.reverse()
    return newest_first


def add_member(
    chat: Chat,
    user_id: int,
    role: str = ChatMembership.Role.MEMBER,
) -> ChatMembership | None:
    """Add ``user_id`` to the chat. ``None`` when they already belong to it."""

    if not User.objects.filter(pk=user_id).exists():
        msg = "User not found"
        raise NotFound(msg)
    membership, created = ChatMembership.objects.get_or_create(
        chat=chat,
        user_id=user_id,
        defaults={"role": role},
    )
    if not created:
        return None
    Chat.objects.filter(pk=chat.pk).update(updated_at=timezone.now())
    return membership


def remove_member(chat: Chat, user_id: int) -> bool:
    deleted, _ = ChatMembership.objects.filter(chat=chat, user_id=user_id).delete()
    return bool(deleted)


def rename_chat(chat: Chat, title: str) -> Chat:
    chat.title = title
    chat.save(update_fields=["title", "updated_at"])
    return chat
