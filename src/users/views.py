"""User administration endpoints."""

from django.contrib.auth import get_user_model
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from access_control.permissions import UserPolicyPermission
from access_control.policies import ResourceType
from access_control.roles import Role
from access_control.services import authorization
from audit.context import AuditContext
from core.response import BaseViewSet, api_response
from .serializers import CreateUserSerializer, UpdateUserSerializer, UserSerializer
from .services import UserService

User = get_user_model()


class UserViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, BaseViewSet):
    """List/retrieve active users; writes go through ``UserService``.

    Reads are gated by the user policy in ``UserPolicyPermission``. Writes
    are authorized and audited by the service, which needs the target and
    the requested role to decide.
    """

    serializer_class = UserSerializer
    permission_classes = [UserPolicyPermission]
    resource_type = ResourceType.USER
    queryset = User.objects.filter(is_active=True)
    service_class = UserService

    def get_service(self) -> UserService:
        return self.service_class()

    def create(self, request):
        serializer = CreateUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.get_service().create(serializer.validated_data, AuditContext.from_request(request))
        return api_response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = UpdateUserSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = self.get_service().update(pk, serializer.validated_data, AuditContext.from_request(request))
        return api_response(UserSerializer(user).data)

    def destroy(self, request, pk=None):
        self.get_service().delete(pk, AuditContext.from_request(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="assignable-roles", permission_classes=[IsAuthenticated])
    def assignable_roles(self, request):
        """Roles the caller may assign, in declaration order."""
        allowed = authorization.get_assignable_roles(request.user)
        roles = [{"value": role.value, "label": role.label} for role in Role if role in allowed]
        return api_response(roles)
