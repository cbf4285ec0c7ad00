from django.contrib import admin
from .models import SalesChannel, WineChannel, ArticleChannel, UserChannel


@admin.register(SalesChannel)
class SalesChannelAdmin(admin.ModelAdmin):
    list_display = ['name', 'description', 'created_at']
    search_fields = ['name', 'description']
    ordering = ['name']


@admin.register(WineChannel)
class WineChannelAdmin(admin.ModelAdmin):
    list_display = ['wine', 'channel', 'assigned_at']
    list_filter = ['channel']
    raw_id_fields = ['wine']


@admin.register(ArticleChannel)
class ArticleChannelAdmin(admin.ModelAdmin):
    list_display = ['article_id', 'channel', 'assigned_at']
    list_filter = ['channel']
    raw_id_fields = ['article']


@admin.register(UserChannel)
class UserChannelAdmin(admin.ModelAdmin):
    list_display = ['user', 'channel', 'assigned_at']
    list_filter = ['channel']
