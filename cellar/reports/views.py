import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Count
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cellar.articles.models import StandardArticle
from cellar.core.permissions import is_admin
from cellar.sales.access import visible_queryset
from cellar.wines.models import Bottle

logger = logging.getLogger(__name__)

User = get_user_model()


def _status_counts(queryset, choices):
    """Count rows per status, every known status present (zero when absent)"""
    counts = {value: 0 for value, _ in choices}
    for row in queryset.order_by().prefetch_related(None).values('status').annotate(total=Count('id')):
        counts[row['status']] = row['total']
    return counts


def wine_stats(user):
    try:
        wines = visible_queryset(user, 'wine')
        bottles = Bottle.objects.filter(wine__in=wines.values('pk'))
        return {
            'total_wines': wines.count(),
            'total_bottles': bottles.count(),
            'bottles_by_status': _status_counts(bottles, Bottle.STATUS_CHOICES),
        }
    except DatabaseError as e:
        logger.error(f"Failed to compute wine statistics: {str(e)}", exc_info=True)
        return {
            'total_wines': 0,
            'total_bottles': 0,
            'bottles_by_status': {value: 0 for value, _ in Bottle.STATUS_CHOICES},
        }


def article_stats(user):
    try:
        articles = visible_queryset(user, 'article')
        return {
            'total_articles': articles.count(),
            'articles_by_status': _status_counts(articles, StandardArticle.STATUS_CHOICES),
        }
    except DatabaseError as e:
        logger.error(f"Failed to compute article statistics: {str(e)}", exc_info=True)
        return {
            'total_articles': 0,
            'articles_by_status': {value: 0 for value, _ in StandardArticle.STATUS_CHOICES},
        }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Home page statistics, limited to the wines and articles visible to the requester"""
    data = {}
    data.update(wine_stats(request.user))
    data.update(article_stats(request.user))
    if is_admin(request.user):
        try:
            data['total_users'] = User.objects.count()
        except DatabaseError as e:
            logger.error(f"Failed to count users: {str(e)}", exc_info=True)
            data['total_users'] = 0
    return Response(data)
