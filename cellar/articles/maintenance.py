"""
Maintenance utility for the article/channel join table.

Article-channel rows carry no database constraint on the article side, so
rows inserted or left behind outside the ORM can point at articles that no
longer exist. ``repair_article_channels`` deletes those rows and can seed two
demonstration articles linked to the two demonstration channels.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Q

from cellar.sales.models import SalesChannel, ArticleChannel
from .models import StandardArticle

logger = logging.getLogger(__name__)

User = get_user_model()

DEMO_CHANNEL_NAMES = ['Brocantes Antiquités', 'Hôtel de vente']
DEMO_ARTICLE_NAMES = ['Peinture Buffet 55', 'peinture monterisso 1955']
DEMO_DESCRIPTION = 'Article standard de test'


def delete_orphaned_article_channels(dry_run=False):
    """
    Scan every article-channel row once and delete the ones whose article is
    gone. A failure on one row is logged and the scan moves on.

    Returns the number of orphaned rows deleted (found, under ``dry_run``).
    """
    deleted = 0
    rows = list(ArticleChannel.objects.order_by('id').values_list('id', 'article_id'))
    for row_id, article_id in rows:
        try:
            if StandardArticle.objects.filter(pk=article_id).exists():
                continue
            if not dry_run:
                ArticleChannel.objects.filter(pk=row_id).delete()
            deleted += 1
            logger.info(f"Orphaned article-channel row {row_id} (article {article_id}) {'found' if dry_run else 'deleted'}")
        except DatabaseError as e:
            logger.error(f"Failed to check article-channel row {row_id}: {str(e)}", exc_info=True)
    return deleted


def first_admin():
    return User.objects.filter(Q(role='admin') | Q(is_superuser=True)).order_by('date_joined', 'id').first()


def seed_demo_articles(dry_run=False):
    """
    Create the demonstration articles, each linked to both demonstration
    channels. Returns ``(articles, error)``; nothing is created when a
    channel or the admin author is missing.
    """
    channels = list(SalesChannel.objects.filter(name__in=DEMO_CHANNEL_NAMES))
    missing = sorted(set(DEMO_CHANNEL_NAMES) - {channel.name for channel in channels})
    if missing:
        return [], f"Sales channels not found: {', '.join(missing)}"

    admin = first_admin()
    if admin is None:
        return [], 'No admin user found'

    articles = []
    for name in DEMO_ARTICLE_NAMES:
        if dry_run:
            articles.append({'id': None, 'name': name, 'channels': DEMO_CHANNEL_NAMES})
            continue
        try:
            article = StandardArticle.objects.create(
                name=name,
                description=DEMO_DESCRIPTION,
                quantity=1,
                status='for_sale',
                created_by=admin,
            )
            ArticleChannel.objects.bulk_create(
                [ArticleChannel(article=article, channel=channel) for channel in channels],
                ignore_conflicts=True,
            )
            articles.append({'id': article.pk, 'name': article.name, 'channels': [c.name for c in channels]})
        except DatabaseError as e:
            # Earlier articles stay; try the next one
            logger.error(f"Failed to seed demo article '{name}': {str(e)}", exc_info=True)
    return articles, None


def repair_article_channels(seed_demo=True, dry_run=False):
    """
    Delete orphaned article-channel rows, then optionally seed the demo
    articles.

    Returns:
        {'success', 'orphaned_relations_deleted', 'articles', 'error'?}
    """
    report = {
        'success': True,
        'orphaned_relations_deleted': delete_orphaned_article_channels(dry_run=dry_run),
        'articles': [],
    }
    if seed_demo:
        articles, error = seed_demo_articles(dry_run=dry_run)
        report['articles'] = articles
        if error:
            report['success'] = False
            report['error'] = error
            logger.warning(f"Demo article seeding skipped: {error}")
    logger.info(
        f"Article channel repair: {report['orphaned_relations_deleted']} orphaned row(s), "
        f"{len(report['articles'])} demo article(s)"
    )
    return report
