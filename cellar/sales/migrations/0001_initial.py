# Generated manually for the initial cellar schema

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('wines', '0001_initial'),
        ('articles', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SalesChannel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'sales_channels',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='WineChannel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('assigned_at', models.DateTimeField(auto_now_add=True)),
                ('channel', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wine_links', to='sales.saleschannel')),
                ('wine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='channel_links', to='wines.wine')),
            ],
            options={
                'db_table': 'wine_channels',
                'constraints': [models.UniqueConstraint(fields=('wine', 'channel'), name='unique_wine_channel')],
            },
        ),
        migrations.CreateModel(
            name='ArticleChannel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('assigned_at', models.DateTimeField(auto_now_add=True)),
                ('article', models.ForeignKey(db_constraint=False, on_delete=django.db.models.deletion.CASCADE, related_name='channel_links', to='articles.standardarticle')),
                ('channel', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='article_links', to='sales.saleschannel')),
            ],
            options={
                'db_table': 'article_channels',
                'constraints': [models.UniqueConstraint(fields=('article', 'channel'), name='unique_article_channel')],
            },
        ),
        migrations.CreateModel(
            name='UserChannel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('assigned_at', models.DateTimeField(auto_now_add=True)),
                ('channel', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='user_links', to='sales.saleschannel')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='channel_links', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_channels',
                'constraints': [models.UniqueConstraint(fields=('user', 'channel'), name='unique_user_channel')],
            },
        ),
    ]
