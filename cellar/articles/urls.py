from django.urls import path
from .views import (
    article_list_create, article_detail, article_status,
    article_photo_upload, article_photo_delete,
    article_channels, fix_articles,
)

urlpatterns = [
    # Standard article endpoints
    path('articles/', article_list_create, name='article-list-create'),
    path('articles/<int:pk>/', article_detail, name='article-detail'),
    path('articles/<int:pk>/status/', article_status, name='article-status'),
    path('articles/<int:pk>/photos/', article_photo_upload, name='article-photo-upload'),
    path('articles/<int:pk>/photos/<int:photo_id>/', article_photo_delete, name='article-photo-delete'),
    path('articles/<int:pk>/channels/', article_channels, name='article-channels'),

    # Maintenance endpoints
    path('maintenance/fix-articles/', fix_articles, name='fix-articles'),
]
