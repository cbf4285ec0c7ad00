"""
Test suite for the catalog module
Tests: category and tag CRUD with role restrictions
"""
from django.test import TestCase
from rest_framework import status

from cellar.catalog.models import Category, Tag
from cellar.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CategoryAPITests(TestCase):
    """Categories: readable by everyone, writable by admins only"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.moderator = TestDataFactory.create_moderator()

    def test_list_categories(self):
        TestDataFactory.create_category(name='Mobilier')
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['Mobilier'])

    def test_admin_creates_category(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/categories/', {'name': 'Tableaux'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Category.objects.filter(name='Tableaux').exists())

    def test_moderator_cannot_create_category(self):
        self.client.authenticate_user(self.moderator)
        response = self.client.post('/api/v1/categories/', {'name': 'Tableaux'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_duplicate_category_name(self):
        TestDataFactory.create_category(name='Tableaux')
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/categories/', {'name': 'Tableaux'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_category_uncategorizes_articles(self):
        category = TestDataFactory.create_category()
        article = TestDataFactory.create_article(category=category)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        article.refresh_from_db()
        self.assertIsNone(article.category)


class TagAPITests(TestCase):
    """Tags: moderators create and edit, only admins delete"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.moderator = TestDataFactory.create_moderator()

    def test_moderator_creates_tag_with_default_color(self):
        self.client.authenticate_user(self.moderator)
        response = self.client.post('/api/v1/tags/', {'name': 'Rare'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['color'], '#3b82f6')

    def test_invalid_color(self):
        self.client.authenticate_user(self.moderator)
        response = self.client.post('/api/v1/tags/', {'name': 'Rare', 'color': 'red'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_standard_user_cannot_create_tag(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/tags/', {'name': 'Rare'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_moderator_updates_tag(self):
        tag = TestDataFactory.create_tag(name='Rare')
        self.client.authenticate_user(self.moderator)
        response = self.client.patch(f'/api/v1/tags/{tag.id}/', {'color': '#ff0000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tag.refresh_from_db()
        self.assertEqual(tag.color, '#ff0000')

    def test_moderator_cannot_delete_tag(self):
        tag = TestDataFactory.create_tag()
        self.client.authenticate_user(self.moderator)
        response = self.client.delete(f'/api/v1/tags/{tag.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Tag.objects.filter(pk=tag.id).exists())

    def test_admin_deletes_tag_and_it_leaves_entities(self):
        tag = TestDataFactory.create_tag()
        wine = TestDataFactory.create_wine()
        article = TestDataFactory.create_article()
        wine.tags.add(tag)
        article.tags.add(tag)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/tags/{tag.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(wine.tags.count(), 0)
        self.assertEqual(article.tags.count(), 0)
