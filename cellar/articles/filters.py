import django_filters
from django.db.models import Q
from .models import StandardArticle


class StandardArticleFilter(django_filters.FilterSet):
    """Listing filters for standard articles, applied on top of the visible set"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=StandardArticle.STATUS_CHOICES)
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    tag = django_filters.NumberFilter(field_name='tags__id', distinct=True)

    class Meta:
        model = StandardArticle
        fields = ['search', 'status', 'category', 'tag']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(description__icontains=value))
