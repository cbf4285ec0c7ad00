from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Wine(models.Model):
    """A wine reference; physical bottles hang off it"""
    COLOUR_CHOICES = [
        ('Rouge', 'Rouge'),
        ('Blanc', 'Blanc'),
        ('Rosé', 'Rosé'),
        ('Champagne', 'Champagne'),
        ('Effervescent', 'Effervescent'),
    ]
    BOTTLE_VOLUME_CHOICES = [
        ('37.5 cl', '37.5 cl'),
        ('75 cl', '75 cl'),
        ('150 cl (Magnum)', '150 cl (Magnum)'),
        ('300 cl (Jéroboam)', '300 cl (Jéroboam)'),
        ('450 cl (Réhoboam)', '450 cl (Réhoboam)'),
        ('600 cl (Mathusalem)', '600 cl (Mathusalem)'),
    ]

    name = models.CharField(max_length=255)
    producer = models.CharField(max_length=255, blank=True, null=True)
    appellation = models.CharField(max_length=255, blank=True, null=True)
    region = models.CharField(max_length=255, blank=True, null=True)
    country = models.CharField(max_length=100, blank=True, null=True)
    vintage = models.PositiveIntegerField(
        null=True, blank=True,
        validators=[MinValueValidator(1800), MaxValueValidator(2100)],
    )
    colour = models.CharField(max_length=20, choices=COLOUR_CHOICES, blank=True, null=True)
    grape_variety = models.CharField(max_length=255, blank=True, null=True)
    alcohol_degree = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    bottle_volume = models.CharField(max_length=30, choices=BOTTLE_VOLUME_CHOICES, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    optimal_keep_min = models.PositiveIntegerField(null=True, blank=True, help_text="Minimum ageing, in years")
    optimal_keep_max = models.PositiveIntegerField(null=True, blank=True, help_text="Maximum ageing, in years")
    serving_temperature = models.CharField(max_length=50, blank=True, null=True)
    food_pairing = models.TextField(blank=True, null=True)
    unit_purchase_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    general_comment = models.TextField(blank=True, null=True)
    tags = models.ManyToManyField('catalog.Tag', blank=True, related_name='wines', db_table='wine_tags')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='wines_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} {self.vintage}" if self.vintage else self.name

    class Meta:
        db_table = 'wines'
        ordering = ['-created_at']


class WinePhoto(models.Model):
    wine = models.ForeignKey(Wine, on_delete=models.CASCADE, related_name='photos')
    url = models.URLField(max_length=1000)
    storage_path = models.CharField(max_length=500, help_text="Blob path inside the wine photos container")
    comment = models.TextField(blank=True, null=True)
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Photo {self.position} of {self.wine}"

    class Meta:
        db_table = 'wine_photos'
        ordering = ['position', 'id']


class Bottle(models.Model):
    """A physical bottle of a wine, identified by a unique code"""
    CONDITION_CHOICES = [
        ('EXCELLENT', 'Excellent état'),
        ('BON', 'Bon état'),
        ('CORRECT', 'État correct'),
        ('MOYEN', 'État moyen'),
        ('MAUVAIS', 'Mauvais état'),
        ('DIFFICULTE_EVOLUTION', 'Difficulté évolution'),
    ]
    FILL_LEVEL_CHOICES = [
        ('PLEIN', 'Plein (100%)'),
        ('HAUT_EPAULE', 'Haut épaule (95%)'),
        ('MI_EPAULE', 'Mi-épaule (90%)'),
        ('BAS_EPAULE', 'Bas épaule (85%)'),
        ('HAUT_GOULOT', 'Haut goulot (80%)'),
        ('MI_GOULOT', 'Mi-goulot (70%)'),
    ]
    STATUS_CHOICES = [
        ('DISPONIBLE', 'Disponible'),
        ('A_VENDRE', 'À vendre'),
        ('VENDU', 'Vendu'),
        ('CONSOMME', 'Consommé'),
    ]

    wine = models.ForeignKey(Wine, on_delete=models.CASCADE, related_name='bottles')
    code = models.CharField(max_length=100, unique=True)
    cellar_location = models.CharField(max_length=255, blank=True, null=True)
    entry_date = models.DateField(null=True, blank=True)
    condition = models.CharField(max_length=30, choices=CONDITION_CHOICES, default='EXCELLENT')
    fill_level = models.CharField(max_length=20, choices=FILL_LEVEL_CHOICES, default='PLEIN')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DISPONIBLE')
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.code

    class Meta:
        db_table = 'bottles'
        ordering = ['code']
        indexes = [
            models.Index(fields=['status'], name='bottles_status_idx'),
        ]
