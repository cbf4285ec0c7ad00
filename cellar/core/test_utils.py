"""
Test utilities and factories for creating test data
"""
import io
import random
import string

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from cellar.articles.models import StandardArticle
from cellar.catalog.models import Category, Tag
from cellar.sales.models import SalesChannel, WineChannel, ArticleChannel, UserChannel
from cellar.wines.models import Wine, Bottle

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='standard',
                    email_confirmed=True, is_active=True, is_superuser=False, channels=None):
        """Create a test user, optionally assigned to sales channels"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6).lower()}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            email_confirmed=email_confirmed,
            is_active=is_active,
            is_superuser=is_superuser,
        )
        for channel in channels or []:
            UserChannel.objects.create(user=user, channel=channel)
        return user

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role='admin', **kwargs)

    @staticmethod
    def create_moderator(**kwargs):
        return TestDataFactory.create_user(role='moderator', **kwargs)

    @staticmethod
    def create_channel(name=None, description=None):
        """Create a test sales channel"""
        if not name:
            name = f'Channel_{TestDataFactory.random_string(6)}'
        return SalesChannel.objects.create(
            name=name,
            description=description or f'Test channel {name}'
        )

    @staticmethod
    def create_category(name=None, description=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=description or f'Test category {name}'
        )

    @staticmethod
    def create_tag(name=None, color='#3b82f6'):
        """Create a test tag"""
        if not name:
            name = f'Tag_{TestDataFactory.random_string(6)}'
        return Tag.objects.create(name=name, color=color)

    @staticmethod
    def create_wine(name=None, created_by=None, channels=None, **fields):
        """Create a test wine, optionally linked to sales channels"""
        if not name:
            name = f'Wine_{TestDataFactory.random_string(6)}'
        fields.setdefault('producer', 'Domaine Test')
        fields.setdefault('vintage', 2015)
        fields.setdefault('colour', 'Rouge')
        wine = Wine.objects.create(name=name, created_by=created_by, **fields)
        for channel in channels or []:
            WineChannel.objects.create(wine=wine, channel=channel)
        return wine

    @staticmethod
    def create_bottle(wine, code=None, status='DISPONIBLE'):
        """Create a test bottle"""
        if not code:
            code = f'BT-{TestDataFactory.random_string(8).upper()}'
        return Bottle.objects.create(wine=wine, code=code, status=status)

    @staticmethod
    def create_article(name=None, created_by=None, channels=None, category=None, **fields):
        """Create a test standard article, optionally linked to sales channels"""
        if not name:
            name = f'Article_{TestDataFactory.random_string(6)}'
        fields.setdefault('description', f'Test article {name}')
        article = StandardArticle.objects.create(
            name=name,
            created_by=created_by,
            category=category,
            **fields
        )
        for channel in channels or []:
            ArticleChannel.objects.create(article=article, channel=channel)
        return article

    @staticmethod
    def create_image_file(name='photo.jpg', image_format='JPEG', size=(10, 10)):
        """Create an in-memory image upload"""
        buffer = io.BytesIO()
        Image.new('RGB', size, color=(120, 20, 40)).save(buffer, format=image_format)
        content_type = 'image/png' if image_format == 'PNG' else 'image/jpeg'
        return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
