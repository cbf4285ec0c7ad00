from django.contrib import admin
from .models import StandardArticle, ArticlePhoto


class ArticlePhotoInline(admin.TabularInline):
    model = ArticlePhoto
    extra = 0
    fields = ['url', 'position']


@admin.register(StandardArticle)
class StandardArticleAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'status', 'quantity', 'sale_price', 'created_by', 'created_at']
    list_filter = ['status', 'category']
    search_fields = ['name', 'description']
    filter_horizontal = ['tags']
    inlines = [ArticlePhotoInline]
    readonly_fields = ['acceptance_date', 'sale_date', 'created_by', 'created_at', 'updated_at']
