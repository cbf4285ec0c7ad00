# Generated manually for the initial cellar schema

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Wine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('producer', models.CharField(blank=True, max_length=255, null=True)),
                ('appellation', models.CharField(blank=True, max_length=255, null=True)),
                ('region', models.CharField(blank=True, max_length=255, null=True)),
                ('country', models.CharField(blank=True, max_length=100, null=True)),
                ('vintage', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1800), django.core.validators.MaxValueValidator(2100)])),
                ('colour', models.CharField(blank=True, choices=[('Rouge', 'Rouge'), ('Blanc', 'Blanc'), ('Rosé', 'Rosé'), ('Champagne', 'Champagne'), ('Effervescent', 'Effervescent')], max_length=20, null=True)),
                ('grape_variety', models.CharField(blank=True, max_length=255, null=True)),
                ('alcohol_degree', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ('bottle_volume', models.CharField(blank=True, choices=[('37.5 cl', '37.5 cl'), ('75 cl', '75 cl'), ('150 cl (Magnum)', '150 cl (Magnum)'), ('300 cl (Jéroboam)', '300 cl (Jéroboam)'), ('450 cl (Réhoboam)', '450 cl (Réhoboam)'), ('600 cl (Mathusalem)', '600 cl (Mathusalem)')], max_length=30, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('optimal_keep_min', models.PositiveIntegerField(blank=True, help_text='Minimum ageing, in years', null=True)),
                ('optimal_keep_max', models.PositiveIntegerField(blank=True, help_text='Maximum ageing, in years', null=True)),
                ('serving_temperature', models.CharField(blank=True, max_length=50, null=True)),
                ('food_pairing', models.TextField(blank=True, null=True)),
                ('unit_purchase_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('general_comment', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='wines_created', to=settings.AUTH_USER_MODEL)),
                ('tags', models.ManyToManyField(blank=True, db_table='wine_tags', related_name='wines', to='catalog.tag')),
            ],
            options={
                'db_table': 'wines',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='WinePhoto',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('url', models.URLField(max_length=1000)),
                ('storage_path', models.CharField(help_text='Blob path inside the wine photos container', max_length=500)),
                ('comment', models.TextField(blank=True, null=True)),
                ('position', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('wine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='photos', to='wines.wine')),
            ],
            options={
                'db_table': 'wine_photos',
                'ordering': ['position', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Bottle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=100, unique=True)),
                ('cellar_location', models.CharField(blank=True, max_length=255, null=True)),
                ('entry_date', models.DateField(blank=True, null=True)),
                ('condition', models.CharField(choices=[('EXCELLENT', 'Excellent état'), ('BON', 'Bon état'), ('CORRECT', 'État correct'), ('MOYEN', 'État moyen'), ('MAUVAIS', 'Mauvais état'), ('DIFFICULTE_EVOLUTION', 'Difficulté évolution')], default='EXCELLENT', max_length=30)),
                ('fill_level', models.CharField(choices=[('PLEIN', 'Plein (100%)'), ('HAUT_EPAULE', 'Haut épaule (95%)'), ('MI_EPAULE', 'Mi-épaule (90%)'), ('BAS_EPAULE', 'Bas épaule (85%)'), ('HAUT_GOULOT', 'Haut goulot (80%)'), ('MI_GOULOT', 'Mi-goulot (70%)')], default='PLEIN', max_length=20)),
                ('status', models.CharField(choices=[('DISPONIBLE', 'Disponible'), ('A_VENDRE', 'À vendre'), ('VENDU', 'Vendu'), ('CONSOMME', 'Consommé')], default='DISPONIBLE', max_length=20)),
                ('comment', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('wine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bottles', to='wines.wine')),
            ],
            options={
                'db_table': 'bottles',
                'ordering': ['code'],
                'indexes': [models.Index(fields=['status'], name='bottles_status_idx')],
            },
        ),
    ]
