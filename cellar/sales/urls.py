from django.urls import path
from .views import (
    sales_channel_list_create, sales_channel_detail,
    channel_assignment_list, channel_assignment_bulk, channel_assignment_diagnostics,
)

urlpatterns = [
    # Sales channel endpoints
    path('sales-channels/', sales_channel_list_create, name='sales-channel-list-create'),
    path('sales-channels/<int:pk>/', sales_channel_detail, name='sales-channel-detail'),

    # Channel assignment endpoints
    path('channel-assignments/', channel_assignment_list, name='channel-assignment-list'),
    path('channel-assignments/bulk/', channel_assignment_bulk, name='channel-assignment-bulk'),
    path('channel-assignments/diagnostics/', channel_assignment_diagnostics, name='channel-assignment-diagnostics'),
]
