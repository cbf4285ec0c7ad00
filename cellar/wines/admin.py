from django.contrib import admin
from .models import Wine, WinePhoto, Bottle


class WinePhotoInline(admin.TabularInline):
    model = WinePhoto
    extra = 0
    fields = ['url', 'comment', 'position']


class BottleInline(admin.TabularInline):
    model = Bottle
    extra = 0
    fields = ['code', 'cellar_location', 'condition', 'fill_level', 'status']


@admin.register(Wine)
class WineAdmin(admin.ModelAdmin):
    list_display = ['name', 'producer', 'vintage', 'colour', 'region', 'created_at']
    list_filter = ['colour', 'country', 'bottle_volume']
    search_fields = ['name', 'producer', 'appellation']
    filter_horizontal = ['tags']
    inlines = [WinePhotoInline, BottleInline]
    readonly_fields = ['created_by', 'created_at', 'updated_at']


@admin.register(Bottle)
class BottleAdmin(admin.ModelAdmin):
    list_display = ['code', 'wine', 'cellar_location', 'condition', 'fill_level', 'status', 'entry_date']
    list_filter = ['status', 'condition', 'fill_level']
    search_fields = ['code', 'wine__name']
    raw_id_fields = ['wine']
