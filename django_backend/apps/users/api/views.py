import logging

from django.contrib.auth import get_user_model
from rest_framework import generics, mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from .permissions import IsAdminRole
from .serializers import LoginSerializer, RegisterSerializer, RoleUpdateSerializer, UserSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


class RegisterAPIView(generics.CreateAPIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    serializer_class = RegisterSerializer

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info("User registered: %s", user.id)


class LoginAPIView(TokenObtainPairView):
    """Exchange email and password for an access/refresh token pair."""

    serializer_class = LoginSerializer


class UserViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = User.objects.all().order_by("id")
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def get_permissions(self):
        if self.action == "me":
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    @action(detail=False, methods=["get"])
    def me(self, request):
        return Response(UserSerializer(request.user).data)

    @action(detail=True, methods=["patch"])
    def role(self, request, pk=None):
        """Change a user's role (admin only)."""
        user = self.get_object()
        ser = RoleUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        user.set_role(ser.validated_data["role"])
        logger.info("User %s role set to %s by %s", user.id, user.role, request.user.id)
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)
