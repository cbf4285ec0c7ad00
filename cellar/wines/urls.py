from django.urls import path
from .views import (
    wine_list_create, wine_detail,
    wine_photo_upload, wine_photo_detail,
    wine_bottles, bottle_detail,
    wine_channels,
)

urlpatterns = [
    # Wine endpoints
    path('wines/', wine_list_create, name='wine-list-create'),
    path('wines/<int:pk>/', wine_detail, name='wine-detail'),
    path('wines/<int:pk>/photos/', wine_photo_upload, name='wine-photo-upload'),
    path('wines/<int:pk>/photos/<int:photo_id>/', wine_photo_detail, name='wine-photo-detail'),
    path('wines/<int:pk>/bottles/', wine_bottles, name='wine-bottles'),
    path('wines/<int:pk>/channels/', wine_channels, name='wine-channels'),

    # Bottle endpoints
    path('bottles/<int:pk>/', bottle_detail, name='bottle-detail'),
]
