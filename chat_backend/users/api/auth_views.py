from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from datetime import timedelta

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.views import TokenRefreshView

from .serializers import RegisterSerializer
from .serializers import UserSerializer


def _cookie_kwargs() -> dict:
    return {
        "httponly": True,
        "secure": getattr(settings, "JWT_AUTH_COOKIE_SECURE", not settings.DEBUG),
        "samesite": getattr(settings, "JWT_AUTH_COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }


def _set_cookie(
    response: Response,
    name: str,
    value: str,
    max_age: int | None,
) -> None:
    if not value:
        return
    cookie_kwargs = _cookie_kwargs()
    if max_age is not None:
        cookie_kwargs["max_age"] = max_age
    response.set_cookie(name, value, **cookie_kwargs)


def _set_jwt_cookies(
    response: Response, access: str | None, refresh: str | None
) -> None:
    access_lifetime: timedelta = settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]
    refresh_lifetime: timedelta = settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"]

    access_cookie = getattr(settings, "JWT_AUTH_COOKIE", "access_token")
    refresh_cookie = getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token")

    if access:
        _set_cookie(
            response, access_cookie, access, int(access_lifetime.total_seconds())
        )
    if refresh:
        _set_cookie(
            response, refresh_cookie, refresh, int(refresh_lifetime.total_seconds())
        )


def _token_response(user, request, http_status: int) -> Response:
    refresh = RefreshToken.for_user(user)
    access = str(refresh.access_token)
    data = {
        "user": UserSerializer(user, context={"request": request}).data,
        "access": access,
        "refresh": str(refresh),
    }
    response = Response(data, status=http_status)
    _set_jwt_cookies(response, access, str(refresh))
    return response


@extend_schema(tags=["Authentication"], request=RegisterSerializer)
class RegisterView(APIView):
    """Create an account and sign it in straight away."""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return _token_response(user, request, status.HTTP_201_CREATED)


@extend_schema(tags=["Authentication"])
class LoginView(TokenObtainPairView):
    """Email/password login returning tokens in the body and as HttpOnly cookies."""

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc
        return _token_response(serializer.user, request, status.HTTP_200_OK)


@extend_schema(tags=["Authentication"], request=None)
class LogoutView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        response = Response(
            {"status": "success", "message": "Logged out successfully."},
            status=status.HTTP_200_OK,
        )
        cookie_kwargs = _cookie_kwargs()
        for name in (
            getattr(settings, "JWT_AUTH_COOKIE", "access_token"),
            getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token"),
        ):
            response.delete_cookie(
                name, path=cookie_kwargs["path"], samesite=cookie_kwargs["samesite"]
            )
        return response


@extend_schema(tags=["Authentication"])
class CookieJWTRefreshView(TokenRefreshView):
    """Refresh that also accepts the refresh cookie and re-sets the JWT cookies."""

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        cookie_name = getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token")
        refresh = request.data.get("refresh") or request.COOKIES.get(cookie_name)
        serializer = self.get_serializer(data={"refresh": refresh})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc
        response = Response(serializer.validated_data, status=status.HTTP_200_OK)
        _set_jwt_cookies(
            response, response.data.get("access"), response.data.get("refresh")
        )
        return response
