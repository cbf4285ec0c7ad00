from django.urls import path
from .views import (
    category_list_create, category_detail,
    tag_list_create, tag_detail,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Tag endpoints
    path('tags/', tag_list_create, name='tag-list-create'),
    path('tags/<int:pk>/', tag_detail, name='tag-detail'),
]
