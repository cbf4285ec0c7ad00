"""
Channel-based visibility of wines and standard articles.

Admins see everything. Any other user sees exactly the entities that share at
least one sales channel with them; a user with no channel sees nothing, and
an entity with no channel is visible to admins only.
"""
import logging

from django.db import DatabaseError
from django.http import Http404
from django.shortcuts import get_object_or_404

from cellar.core.permissions import is_admin
from .models import UserChannel, WineChannel, ArticleChannel

logger = logging.getLogger(__name__)

ENTITY_TYPES = ('wine', 'article')


def get_entity_model(entity_type):
    # Local imports: wines and articles both import this module
    if entity_type == 'wine':
        from cellar.wines.models import Wine
        return Wine
    if entity_type == 'article':
        from cellar.articles.models import StandardArticle
        return StandardArticle
    raise ValueError(f"Unknown entity type: {entity_type}")


def get_link_model(entity_type):
    """Return the join model and the name of its entity foreign key"""
    if entity_type == 'wine':
        return WineChannel, 'wine'
    if entity_type == 'article':
        return ArticleChannel, 'article'
    raise ValueError(f"Unknown entity type: {entity_type}")


def user_channel_ids(user):
    """Ids of the sales channels the user is assigned to"""
    return list(UserChannel.objects.filter(user=user).values_list('channel_id', flat=True))


def visible_queryset(user, entity_type):
    """
    Lazy queryset of the entities ``user`` may see, newest first, with their
    channel links prefetched. Raises DatabaseError on read failures.
    """
    model = get_entity_model(entity_type)
    link_model, field = get_link_model(entity_type)
    queryset = model.objects.prefetch_related('channel_links__channel').order_by('-created_at')

    if is_admin(user):
        return queryset

    channel_ids = user_channel_ids(user)
    if not channel_ids:
        return model.objects.none()

    entity_ids = set(
        link_model.objects.filter(channel_id__in=channel_ids)
        .values_list(f'{field}_id', flat=True)
        .distinct()
    )
    if not entity_ids:
        return model.objects.none()
    return queryset.filter(pk__in=entity_ids)


def visible_entities(user, entity_type, refine=None):
    """
    Evaluate the entities visible to ``user``.

    ``refine`` may narrow or annotate the queryset (search filters,
    counts) before it is evaluated. Read failures are logged and yield an
    empty list, never a partial one.
    """
    try:
        queryset = visible_queryset(user, entity_type)
        if refine is not None:
            queryset = refine(queryset)
        return list(queryset)
    except DatabaseError as e:
        logger.error(f"Failed to load visible {entity_type}s for user {user.pk}: {str(e)}", exc_info=True)
        return []


def visible_wines(user, refine=None):
    return visible_entities(user, 'wine', refine)


def visible_articles(user, refine=None):
    return visible_entities(user, 'article', refine)


def is_visible(user, entity):
    """Whether a single wine or article is visible to ``user``"""
    if is_admin(user):
        return True
    try:
        return entity.channel_links.filter(channel__user_links__user=user).exists()
    except DatabaseError as e:
        logger.error(f"Visibility check failed for {entity.__class__.__name__} {entity.pk}: {str(e)}", exc_info=True)
        return False


def get_visible_or_404(user, entity_type, pk):
    """Fetch an entity by pk; a hidden entity answers 404 like a missing one"""
    entity = get_object_or_404(get_entity_model(entity_type), pk=pk)
    if not is_visible(user, entity):
        raise Http404(f"No {entity_type} matches the given query.")
    return entity
