import logging

from django.db import DatabaseError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from cellar.sales.bulk import add_user_channels, set_user_channels
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, AdminUserCreateSerializer,
    AdminUserUpdateSerializer, AdminUserConfirmSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        if not self.user.email_confirmed and not self.user.is_superuser:
            raise AuthenticationFailed('Email address has not been confirmed.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = 'admin' if user.is_admin else user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that answers 401 instead of 500 when the user was deleted"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user profile with role capability flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['role'] = 'admin' if user.is_admin else user.role
    user_data['is_admin'] = user.is_admin
    user_data['can_edit'] = user.is_moderator_or_admin
    user_data['can_manage_users'] = user.is_admin
    return Response(user_data)


# User views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    """List all user profiles, newest first"""
    users = User.objects.prefetch_related('channel_links').order_by('-created_at')
    serializer = UserSerializer(users, many=True)
    return Response(serializer.data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve or delete a user profile"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    if user.pk == request.user.pk:
        return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {user.username} deleted by {request.user.username}")
    user.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Admin provisioning views
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_create_user(request):
    """
    Create an active, confirmed account.

    Body:
        {"email", "password", "full_name"?, "role"?, "channel_ids"?}
    """
    serializer = AdminUserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    channel_ids = serializer.validated_data.get('channel_ids', [])
    user = serializer.save()
    logger.info(f"User {user.username} ({user.role}) created by {request.user.username}")

    # The account exists at this point; a failed channel link does not undo it
    if channel_ids:
        try:
            add_user_channels(user, channel_ids)
        except DatabaseError as e:
            logger.error(f"Failed to assign channels {channel_ids} to user {user.pk}: {str(e)}", exc_info=True)

    user.refresh_from_db()
    return Response({'success': True, 'user': UserSerializer(user).data}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_update_user(request):
    """
    Update email, password, name or role of an account, and replace its
    channels when ``channel_ids`` is present.
    """
    serializer = AdminUserUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = get_object_or_404(User, pk=serializer.validated_data['user_id'])
    serializer.update(user, serializer.validated_data)

    if 'channel_ids' in serializer.validated_data:
        try:
            set_user_channels(user, serializer.validated_data['channel_ids'])
        except DatabaseError as e:
            logger.error(f"Failed to replace channels of user {user.pk}: {str(e)}", exc_info=True)
            return Response({'error': 'User updated but channel assignment failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"User {user.username} updated by {request.user.username}")
    return Response({'success': True, 'user': UserSerializer(user).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_confirm_user(request):
    """Mark an account's email address as confirmed"""
    serializer = AdminUserConfirmSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = get_object_or_404(User, pk=serializer.validated_data['user_id'])
    user.email_confirmed = True
    user.save(update_fields=['email_confirmed', 'updated_at'])
    logger.info(f"User {user.username} confirmed by {request.user.username}")
    return Response({'success': True, 'user': UserSerializer(user).data})
