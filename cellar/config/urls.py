"""
URL configuration for the cellar backend.

Every app exposes its JSON endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Cave & Articles Admin Panel"
admin.site.site_title = "Cave & Articles Admin Portal"
admin.site.index_title = "Cellar inventory administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('cellar.core.urls')),
    path('api/v1/', include('cellar.catalog.urls')),
    path('api/v1/', include('cellar.sales.urls')),
    path('api/v1/', include('cellar.wines.urls')),
    path('api/v1/', include('cellar.articles.urls')),
    path('api/v1/', include('cellar.reports.urls')),
]
