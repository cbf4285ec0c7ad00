import django_filters
from django.db.models import Q
from .models import Wine, Bottle


class WineFilter(django_filters.FilterSet):
    """Listing filters for wines, applied on top of the visible set"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    colour = django_filters.ChoiceFilter(choices=Wine.COLOUR_CHOICES)
    tag = django_filters.NumberFilter(field_name='tags__id', distinct=True)
    bottle_status = django_filters.ChoiceFilter(
        field_name='bottles__status', choices=Bottle.STATUS_CHOICES, distinct=True, label='Bottle status'
    )

    class Meta:
        model = Wine
        fields = ['search', 'colour', 'tag', 'bottle_status']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name or producer, exact match on vintage"""
        value = value.strip()
        if not value:
            return queryset
        query = Q(name__icontains=value) | Q(producer__icontains=value)
        if value.isdigit():
            query |= Q(vintage=int(value))
        return queryset.filter(query)
