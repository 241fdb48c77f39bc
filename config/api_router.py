from django.conf import settings
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from chat_backend.chats.api.views import ChatViewSet
from chat_backend.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("chats", ChatViewSet, basename="chats")


app_name = "api"
urlpatterns = router.urls
