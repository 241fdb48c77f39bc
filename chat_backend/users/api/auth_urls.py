from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.views import TokenVerifyView

from .auth_views import CookieJWTRefreshView
from .auth_views import LoginView
from .auth_views import LogoutView
from .auth_views import RegisterView

# Login/register set HttpOnly JWT cookies and also return the tokens in the body,
# since the Socket.IO handshake needs the access token client-side.
urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("jwt/refresh/", CookieJWTRefreshView.as_view(), name="jwt-refresh"),
    path("jwt/verify/", TokenVerifyView.as_view(), name="jwt-verify"),
]
