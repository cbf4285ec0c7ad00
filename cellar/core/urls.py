from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, user_me,
    user_list, user_detail,
    admin_create_user, admin_update_user, admin_confirm_user,
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list, name='user-list'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Admin provisioning endpoints
    path('admin/create-user/', admin_create_user, name='admin-create-user'),
    path('admin/update-user/', admin_update_user, name='admin-update-user'),
    path('admin/confirm-user/', admin_confirm_user, name='admin-confirm-user'),
]
