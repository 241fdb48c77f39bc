import logging

from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from chat_backend.users.models import User
from chat_backend.utils.exceptions import BadRequest

from .serializers import UPDATABLE_FIELDS
from .serializers import UserSerializer
from .serializers import UserUpdateSerializer

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(tags=["Users"]),
    retrieve=extend_schema(tags=["Users"]),
    me=extend_schema(tags=["Users"]),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, GenericViewSet):
    serializer_class = UserSerializer
    queryset = User.objects.all()
    # Plain list (no pagination) so the frontend can pick chat partners.
    pagination_class = None

    @extend_schema(request=UserUpdateSerializer, responses=UserSerializer)
    @action(detail=False, methods=["get", "patch", "delete"])
    def me(self, request):
        user = request.user
        if request.method == "DELETE":
            logger.info("User %s deleted their account", user.pk)
            user.delete()
            return Response(status=status.HTTP_204_NO_CONTENT)

        if request.method == "PATCH":
            if not request.data:
                msg = "Please provide fields to update."
                raise BadRequest(msg)
            for key in request.data:
                if key not in UPDATABLE_FIELDS:
                    msg = f"Invalid field: {key}"
                    raise BadRequest(msg)
            serializer = UserUpdateSerializer(user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            user = serializer.save()

        serializer = UserSerializer(user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)
