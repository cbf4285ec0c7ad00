from django.conf import settings
from django.db import models


class SalesChannel(models.Model):
    """Named sales channel (e.g. an auction house) that items and users are assigned to"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'sales_channels'
        ordering = ['name']


class WineChannel(models.Model):
    wine = models.ForeignKey('wines.Wine', on_delete=models.CASCADE, related_name='channel_links')
    channel = models.ForeignKey(SalesChannel, on_delete=models.CASCADE, related_name='wine_links')
    assigned_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"wine {self.wine_id} -> channel {self.channel_id}"

    class Meta:
        db_table = 'wine_channels'
        constraints = [
            models.UniqueConstraint(fields=['wine', 'channel'], name='unique_wine_channel'),
        ]


class ArticleChannel(models.Model):
    # No database-level constraint on the article side: rows written outside
    # the ORM can outlive their article and are cleaned by
    # cellar.articles.maintenance.repair_article_channels
    article = models.ForeignKey(
        'articles.StandardArticle',
        on_delete=models.CASCADE,
        related_name='channel_links',
        db_constraint=False,
    )
    channel = models.ForeignKey(SalesChannel, on_delete=models.CASCADE, related_name='article_links')
    assigned_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"article {self.article_id} -> channel {self.channel_id}"

    class Meta:
        db_table = 'article_channels'
        constraints = [
            models.UniqueConstraint(fields=['article', 'channel'], name='unique_article_channel'),
        ]


class UserChannel(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='channel_links')
    channel = models.ForeignKey(SalesChannel, on_delete=models.CASCADE, related_name='user_links')
    assigned_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"user {self.user_id} -> channel {self.channel_id}"

    class Meta:
        db_table = 'user_channels'
        constraints = [
            models.UniqueConstraint(fields=['user', 'channel'], name='unique_user_channel'),
        ]
