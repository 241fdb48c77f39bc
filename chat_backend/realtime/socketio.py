"""Socket.IO gateway for chat rooms.

Frontend convention:
- Socket.IO path: ``settings.SOCKETIO_PATH`` (``/socket.io/`` by default)
- Auth: optional JWT access token in ``auth.token``, ``query.token`` or an
  ``Authorization: Bearer`` header
- Events in: ``join_chat``, ``send_message``, ``leave_chat``
- Events out: ``user_online``, ``receive_message``, ``user_offline``

Messages sent over the socket are relayed only. Persisting them is the job of
``POST /api/v1/chats/{id}/messages/``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from typing import NoReturn
from urllib.parse import parse_qs

import socketio
from channels.db import database_sync_to_async
from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

from chat_backend.realtime.registry import RoomRegistry

logger = logging.getLogger(__name__)


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.CORS_ALLOWED_ORIGINS,
    # Handle each connection's events one at a time, in arrival order.
    async_handlers=False,
    logger=False,
    engineio_logger=False,
)

registry = RoomRegistry(sio)


class InvalidPayload(ValueError):
    pass


@database_sync_to_async
def _get_user_id_from_access_token(token: str) -> int:
    jwt_auth = JWTAuthentication()
    validated = jwt_auth.get_validated_token(token)
    user = jwt_auth.get_user(validated)
    return int(user.id)


def _scope(environ: Any) -> Any:
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            return inner
    return environ


def _bearer_from_headers(environ: Any) -> str | None:
    header: str | bytes | None = None
    if isinstance(environ, dict):
        header = environ.get("HTTP_AUTHORIZATION")
    scope = _scope(environ)
    if not header and isinstance(scope, dict):
        for name, value in scope.get("headers") or ():
            if name.lower() == b"authorization":
                header = value
                break
    if isinstance(header, (bytes, bytearray)):
        header = header.decode(errors="ignore")
    if not header:
        return None
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":  # noqa: PLR2004
        return parts[1]
    return None


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract a JWT from the Socket.IO auth payload, query string or headers."""

    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    scope = _scope(environ)
    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    return _bearer_from_headers(environ)


def _refuse(reason: str, exc: Exception | None = None) -> NoReturn:
    raise ConnectionRefusedError(reason) from exc


def _now() -> str:
    return timezone.now().isoformat()


def _parse_chat_id(data: Any) -> int:
    if not isinstance(data, Mapping):
        msg = "payload must be an object"
        raise InvalidPayload(msg)
    raw = data.get("chatId")
    if isinstance(raw, bool):
        msg = "chatId must be a positive integer"
        raise InvalidPayload(msg)
    if isinstance(raw, int) and raw > 0:
        return raw
    if isinstance(raw, str) and raw.isdigit() and int(raw) > 0:
        return int(raw)
    msg = "chatId must be a positive integer"
    raise InvalidPayload(msg)


async def _user_id_for(sid: str, data: Mapping[str, Any]) -> Any:
    user_id = data.get("userId")
    if user_id is not None:
        return user_id
    session = await sio.get_session(sid)
    return session.get("user_id") if isinstance(session, dict) else None


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    strict = getattr(settings, "SOCKETIO_REQUIRE_AUTH", False)
    token = _extract_token(environ, auth)
    user_id: int | None = None

    if token:
        # simplejwt wraps TokenError in InvalidToken (an AuthenticationFailed);
        # unknown or inactive users are AuthenticationFailed too.
        try:
            user_id = await _get_user_id_from_access_token(token)
        except (TokenError, AuthenticationFailed) as exc:
            logger.info("Socket.IO %s token rejected: %s", sid, exc)
            if strict:
                expired = "expired" in str(exc).lower()
                _refuse("jwt_expired" if expired else "unauthorized", exc)
        except Exception as exc:
            logger.exception("Socket.IO connect error")
            if strict:
                _refuse("server_error", exc)
    elif strict:
        _refuse("unauthorized")

    await sio.save_session(sid, {"token": token, "user_id": user_id})
    logger.info("Socket.IO connected: %s (user %s)", sid, user_id)


@sio.event
async def join_chat(sid: str, data: Any):
    try:
        chat_id = _parse_chat_id(data)
    except InvalidPayload as exc:
        logger.warning("Dropped join_chat from %s: %s", sid, exc)
        return

    user_id = await _user_id_for(sid, data)
    await registry.join(sid, chat_id)
    logger.info("User %s joined chat %s (%s)", user_id, chat_id, sid)

    await registry.broadcast(
        chat_id,
        "user_online",
        {"userId": user_id, "timestamp": _now()},
        skip_sid=sid,
    )


@sio.event
async def send_message(sid: str, data: Any):
    try:
        chat_id = _parse_chat_id(data)
        if data.get("message") is None:
            msg = "message is required"
            raise InvalidPayload(msg)
    except InvalidPayload as exc:
        logger.warning("Dropped send_message from %s: %s", sid, exc)
        return

    logger.debug("Relaying message from %s to chat %s", sid, chat_id)
    await registry.broadcast(
        chat_id,
        "receive_message",
        {"message": data["message"], "timestamp": _now()},
    )


@sio.event
async def leave_chat(sid: str, data: Any):
    try:
        chat_id = _parse_chat_id(data)
    except InvalidPayload as exc:
        logger.warning("Dropped leave_chat from %s: %s", sid, exc)
        return

    user_id = await _user_id_for(sid, data)
    await registry.leave(sid, chat_id)
    logger.info("User %s left chat %s (%s)", user_id, chat_id, sid)

    await registry.broadcast(
        chat_id,
        "user_offline",
        {"userId": user_id, "timestamp": _now()},
        skip_sid=sid,
    )


@sio.event
async def disconnect(sid: str, *args: Any):
    rooms = registry.drop_connection(sid)
    logger.info("Socket.IO disconnected: %s (left %d room(s))", sid, len(rooms))
