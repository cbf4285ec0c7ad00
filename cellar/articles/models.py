from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class StandardArticle(models.Model):
    """A non-wine item for sale (furniture, paintings...)"""
    STATUS_CHOICES = [
        ('for_sale', 'En vente'),
        ('accepted', 'Accepté'),
        ('sold', 'Vendu'),
        ('archived', 'Archivé'),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    purchase_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    sale_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(0)])
    category = models.ForeignKey(
        'catalog.Category', on_delete=models.SET_NULL, null=True, blank=True, related_name='articles'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='for_sale')
    acceptance_date = models.DateTimeField(null=True, blank=True)
    sale_date = models.DateTimeField(null=True, blank=True)
    tags = models.ManyToManyField('catalog.Tag', blank=True, related_name='articles', db_table='standard_article_tags')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='articles_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'standard_articles'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='standard_articles_status_idx'),
        ]

    def set_status(self, status, now=None):
        """
        Move to ``status`` and keep the status dates consistent with it.

        accepted keeps an existing acceptance date (else now) and clears the
        sale date; sold does the mirror image; for_sale and archived clear
        both. Any status can follow any other.
        """
        if status not in dict(self.STATUS_CHOICES):
            raise ValueError(f"Unknown article status: {status}")
        now = now or timezone.now()
        self.status = status
        if status == 'accepted':
            self.acceptance_date = self.acceptance_date or now
            self.sale_date = None
        elif status == 'sold':
            self.sale_date = self.sale_date or now
            self.acceptance_date = None
        else:
            self.acceptance_date = None
            self.sale_date = None

    def save(self, *args, **kwargs):
        self.set_status(self.status)
        super().save(*args, **kwargs)


class ArticlePhoto(models.Model):
    article = models.ForeignKey(StandardArticle, on_delete=models.CASCADE, related_name='photos')
    url = models.URLField(max_length=1000)
    storage_path = models.CharField(max_length=500, help_text="Blob path inside the article photos container")
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Photo {self.position} of {self.article}"

    class Meta:
        db_table = 'standard_article_photos'
        ordering = ['position', 'id']
