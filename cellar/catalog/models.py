from django.core.validators import RegexValidator
from django.db import models


class Category(models.Model):
    """Standard article category"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'Categories'
        ordering = ['name']


class Tag(models.Model):
    """Free label shared by wines and standard articles"""
    name = models.CharField(max_length=100, unique=True)
    color = models.CharField(
        max_length=7,
        default='#3b82f6',
        validators=[RegexValidator(r'^#[0-9a-fA-F]{6}$', 'Color must be a hex value like #3b82f6')],
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'tags'
        ordering = ['name']
