"""
Test suite for the articles module
Tests: status transitions, edit rights, listing filters, photos, channels
and the article-channel maintenance utility
"""
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.db import connection
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from cellar.articles.maintenance import (
    repair_article_channels, delete_orphaned_article_channels, seed_demo_articles,
    DEMO_ARTICLE_NAMES, DEMO_CHANNEL_NAMES,
)
from cellar.articles.models import StandardArticle, ArticlePhoto
from cellar.articles.permissions import can_edit_article
from cellar.articles.views import EDIT_FORBIDDEN
from cellar.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from cellar.sales.models import ArticleChannel


def orphan_article(article):
    """Delete an article behind the ORM's back, leaving its channel rows"""
    with connection.cursor() as cursor:
        cursor.execute('DELETE FROM standard_articles WHERE id = %s', [article.id])


class ArticleStatusModelTests(TestCase):
    """Test the status/date rules of StandardArticle"""

    def setUp(self):
        self.article = TestDataFactory.create_article()

    def test_new_article_is_for_sale_without_dates(self):
        self.assertEqual(self.article.status, 'for_sale')
        self.assertIsNone(self.article.acceptance_date)
        self.assertIsNone(self.article.sale_date)

    def test_sold_sets_sale_date_and_clears_acceptance(self):
        now = timezone.now()
        self.article.set_status('accepted', now=now)
        self.assertEqual(self.article.acceptance_date, now)

        later = now + timedelta(days=2)
        self.article.set_status('sold', now=later)
        self.assertEqual(self.article.sale_date, later)
        self.assertIsNone(self.article.acceptance_date)

    def test_back_to_for_sale_clears_dates(self):
        self.article.set_status('sold')
        self.article.save()
        self.article.set_status('for_sale')
        self.article.save()
        self.article.refresh_from_db()
        self.assertIsNone(self.article.sale_date)
        self.assertIsNone(self.article.acceptance_date)

    def test_archived_clears_dates(self):
        self.article.set_status('accepted')
        self.article.set_status('archived')
        self.assertIsNone(self.article.acceptance_date)
        self.assertIsNone(self.article.sale_date)

    def test_accepted_keeps_existing_acceptance_date(self):
        first = timezone.now() - timedelta(days=10)
        self.article.set_status('accepted', now=first)
        self.article.set_status('accepted')
        self.assertEqual(self.article.acceptance_date, first)

    def test_save_normalizes_dates(self):
        article = TestDataFactory.create_article(status='sold')
        self.assertIsNotNone(article.sale_date)
        self.assertIsNone(article.acceptance_date)

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            self.article.set_status('lost')


class ArticleEditRightsTests(TestCase):
    """Admins edit everything, moderators only what they created"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.author = TestDataFactory.create_moderator()
        self.other = TestDataFactory.create_moderator()
        self.user = TestDataFactory.create_user()
        self.article = TestDataFactory.create_article(created_by=self.author)

    def test_can_edit_article(self):
        self.assertTrue(can_edit_article(self.admin, self.article))
        self.assertTrue(can_edit_article(self.author, self.article))
        self.assertFalse(can_edit_article(self.other, self.article))
        self.assertFalse(can_edit_article(self.user, self.article))

    def test_superuser_edits_any_article(self):
        superuser = TestDataFactory.create_user(is_superuser=True)
        self.assertTrue(can_edit_article(superuser, self.article))


class ArticleAPITests(TestCase):
    """Test article endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.channel = TestDataFactory.create_channel()
        self.admin = TestDataFactory.create_admin()
        self.author = TestDataFactory.create_moderator(channels=[self.channel])
        self.other = TestDataFactory.create_moderator(channels=[self.channel])

    def test_create_article(self):
        category = TestDataFactory.create_category()
        tag = TestDataFactory.create_tag()
        self.client.authenticate_user(self.author)
        response = self.client.post('/api/v1/articles/', {
            'name': 'Buffet Henri II',
            'description': 'Buffet en chêne massif',
            'sale_price': '450.00',
            'category_id': category.id,
            'tag_ids': [tag.id],
            'channel_ids': [self.channel.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'for_sale')
        self.assertEqual(response.data['category']['id'], category.id)
        self.assertTrue(response.data['can_edit'])

        article = StandardArticle.objects.get(name='Buffet Henri II')
        self.assertEqual(article.created_by, self.author)
        self.assertTrue(ArticleChannel.objects.filter(article=article, channel=self.channel).exists())

    def test_list_filters(self):
        furniture = TestDataFactory.create_category(name='Mobilier')
        buffet = TestDataFactory.create_article(name='Buffet', category=furniture, channels=[self.channel])
        TestDataFactory.create_article(name='Peinture', status='sold', channels=[self.channel])
        self.client.authenticate_user(self.author)

        response = self.client.get('/api/v1/articles/', {'status': 'sold'})
        self.assertEqual([a['name'] for a in response.data], ['Peinture'])

        response = self.client.get('/api/v1/articles/', {'category': furniture.id})
        self.assertEqual([a['id'] for a in response.data], [buffet.id])

        response = self.client.get('/api/v1/articles/', {'search': 'BUFF'})
        self.assertEqual([a['id'] for a in response.data], [buffet.id])

    def test_list_newest_first_and_visible_only(self):
        older = TestDataFactory.create_article(channels=[self.channel])
        newer = TestDataFactory.create_article(channels=[self.channel])
        StandardArticle.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=1))
        TestDataFactory.create_article(channels=[TestDataFactory.create_channel()])

        self.client.authenticate_user(self.other)
        response = self.client.get('/api/v1/articles/')
        self.assertEqual([a['id'] for a in response.data], [newer.id, older.id])

    def test_other_moderator_cannot_edit(self):
        article = TestDataFactory.create_article(created_by=self.author, channels=[self.channel])
        self.client.authenticate_user(self.other)

        response = self.client.get(f'/api/v1/articles/{article.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['can_edit'])

        response = self.client.patch(f'/api/v1/articles/{article.id}/', {'name': 'Changed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], EDIT_FORBIDDEN)

        response = self.client.delete(f'/api/v1/articles/{article.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(StandardArticle.objects.filter(pk=article.id).exists())

    def test_author_updates_article(self):
        article = TestDataFactory.create_article(created_by=self.author, channels=[self.channel])
        self.client.authenticate_user(self.author)
        response = self.client.patch(f'/api/v1/articles/{article.id}/', {'sale_price': '120.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        article.refresh_from_db()
        self.assertEqual(str(article.sale_price), '120.00')

    @patch('cellar.core.blob_storage.remove_blob', return_value=True)
    def test_admin_deletes_article(self, mock_remove):
        article = TestDataFactory.create_article(created_by=self.author, channels=[self.channel])
        ArticlePhoto.objects.create(article=article, url='https://blob/1.png', storage_path=f'{article.id}/1.png')
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/articles/{article.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        mock_remove.assert_called_once_with('article-images', f'{article.id}/1.png')
        self.assertEqual(ArticleChannel.objects.count(), 0)

    def test_hidden_article_answers_404(self):
        article = TestDataFactory.create_article(channels=[TestDataFactory.create_channel()])
        self.client.authenticate_user(self.author)
        response = self.client.get(f'/api/v1/articles/{article.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_endpoint(self):
        article = TestDataFactory.create_article(created_by=self.author, channels=[self.channel])
        self.client.authenticate_user(self.author)

        response = self.client.patch(f'/api/v1/articles/{article.id}/status/', {'status': 'sold'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'sold')
        self.assertIsNotNone(response.data['sale_date'])
        self.assertIsNone(response.data['acceptance_date'])

        response = self.client.patch(f'/api/v1/articles/{article.id}/status/', {'status': 'for_sale'}, format='json')
        self.assertIsNone(response.data['sale_date'])

    def test_status_endpoint_rejects_unknown_status(self):
        article = TestDataFactory.create_article(created_by=self.author, channels=[self.channel])
        self.client.authenticate_user(self.author)
        response = self.client.patch(f'/api/v1/articles/{article.id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_dates_are_read_only(self):
        article = TestDataFactory.create_article(created_by=self.author, channels=[self.channel])
        self.client.authenticate_user(self.author)
        self.client.patch(f'/api/v1/articles/{article.id}/', {
            'sale_date': timezone.now().isoformat(),
        }, format='json')
        article.refresh_from_db()
        self.assertIsNone(article.sale_date)

    def test_standard_user_cannot_create(self):
        self.client.authenticate_user(TestDataFactory.create_user(channels=[self.channel]))
        response = self.client.post('/api/v1/articles/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ArticlePhotoAPITests(TestCase):
    """Test photo upload and removal on articles"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.author = TestDataFactory.create_moderator()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.article = TestDataFactory.create_article(created_by=self.author)

    @patch('cellar.core.blob_storage.upload_blob', return_value='https://blob/article.png')
    def test_upload_keeps_extension(self, mock_upload):
        response = self.client.post(f'/api/v1/articles/{self.article.id}/photos/', {
            'photos': [TestDataFactory.create_image_file('vase.png', image_format='PNG')],
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        container, path, _data, content_type = mock_upload.call_args.args
        self.assertEqual(container, 'article-images')
        self.assertTrue(path.endswith('-0.png'))
        self.assertEqual(content_type, 'image/png')
        self.assertEqual(response.data[0]['position'], 0)

    @patch('cellar.core.blob_storage.remove_blob', return_value=True)
    def test_delete_photo(self, mock_remove):
        photo = ArticlePhoto.objects.create(article=self.article, url='https://blob/1.jpg', storage_path='1/1.jpg')
        response = self.client.delete(f'/api/v1/articles/{self.article.id}/photos/{photo.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ArticlePhoto.objects.filter(pk=photo.id).exists())

    def test_delete_photo_of_other_article(self):
        other = TestDataFactory.create_article()
        photo = ArticlePhoto.objects.create(article=other, url='https://blob/1.jpg', storage_path='1/1.jpg')
        response = self.client.delete(f'/api/v1/articles/{self.article.id}/photos/{photo.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ArticleChannelAPITests(TestCase):

    def test_replace_channels(self):
        c1 = TestDataFactory.create_channel()
        c2 = TestDataFactory.create_channel()
        article = TestDataFactory.create_article(channels=[c1])
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())

        response = client.put(f'/api/v1/articles/{article.id}/channels/', {'channel_ids': [c1.id, c2.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({c['id'] for c in response.data}, {c1.id, c2.id})


class ArticleMaintenanceTests(TestCase):
    """Test orphan cleanup and demo seeding"""

    def setUp(self):
        self.channel = TestDataFactory.create_channel()

    def create_demo_channels(self):
        return [TestDataFactory.create_channel(name=name) for name in DEMO_CHANNEL_NAMES]

    def test_orphaned_rows_deleted(self):
        kept = TestDataFactory.create_article(channels=[self.channel])
        gone = TestDataFactory.create_article(channels=[self.channel])
        orphan_article(gone)

        self.assertEqual(delete_orphaned_article_channels(), 1)
        self.assertEqual(list(ArticleChannel.objects.values_list('article_id', flat=True)), [kept.id])

    def test_dry_run_keeps_rows(self):
        gone = TestDataFactory.create_article(channels=[self.channel])
        orphan_article(gone)
        self.assertEqual(delete_orphaned_article_channels(dry_run=True), 1)
        self.assertEqual(ArticleChannel.objects.count(), 1)

    def test_seed_requires_demo_channels(self):
        TestDataFactory.create_admin()
        articles, error = seed_demo_articles()
        self.assertEqual(articles, [])
        self.assertIn('Sales channels not found', error)
        self.assertEqual(StandardArticle.objects.count(), 0)

    def test_seed_requires_admin(self):
        self.create_demo_channels()
        articles, error = seed_demo_articles()
        self.assertEqual(articles, [])
        self.assertEqual(error, 'No admin user found')

    def test_repair_seeds_demo_articles(self):
        admin = TestDataFactory.create_admin()
        channels = self.create_demo_channels()
        gone = TestDataFactory.create_article(channels=[self.channel])
        orphan_article(gone)

        report = repair_article_channels()
        self.assertTrue(report['success'])
        self.assertEqual(report['orphaned_relations_deleted'], 1)
        self.assertEqual([a['name'] for a in report['articles']], DEMO_ARTICLE_NAMES)

        for name in DEMO_ARTICLE_NAMES:
            article = StandardArticle.objects.get(name=name)
            self.assertEqual(article.created_by, admin)
            self.assertEqual(article.status, 'for_sale')
            self.assertEqual(
                set(ArticleChannel.objects.filter(article=article).values_list('channel_id', flat=True)),
                {c.id for c in channels}
            )

    def test_repair_reports_seed_failure(self):
        report = repair_article_channels()
        self.assertFalse(report['success'])
        self.assertIn('error', report)

    def test_repair_without_seed(self):
        report = repair_article_channels(seed_demo=False)
        self.assertTrue(report['success'])
        self.assertEqual(report['articles'], [])

    def test_command(self):
        TestDataFactory.create_admin()
        self.create_demo_channels()
        gone = TestDataFactory.create_article(channels=[self.channel])
        orphan_article(gone)

        out = StringIO()
        call_command('repair_article_channels', '--dry-run', stdout=out)
        self.assertIn('Orphaned article-channel rows found: 1', out.getvalue())
        self.assertEqual(ArticleChannel.objects.count(), 1)
        self.assertEqual(StandardArticle.objects.count(), 0)

        out = StringIO()
        call_command('repair_article_channels', stdout=out)
        self.assertIn('Orphaned article-channel rows deleted: 1', out.getvalue())
        self.assertIn('Article channel repair complete', out.getvalue())
        self.assertEqual(StandardArticle.objects.count(), 2)

    def test_fix_articles_endpoint_admin_only(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_moderator())
        response = client.post('/api/v1/maintenance/fix-articles/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_fix_articles_endpoint(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())
        gone = TestDataFactory.create_article(channels=[self.channel])
        orphan_article(gone)
        response = client.post('/api/v1/maintenance/fix-articles/', {'seed_demo': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orphaned_relations_deleted'], 1)
        self.assertEqual(ArticleChannel.objects.count(), 0)

    def test_fix_articles_endpoint_without_demo_channels(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())
        response = client.post('/api/v1/maintenance/fix-articles/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('Sales channels not found', response.data['error'])
        self.assertEqual(StandardArticle.objects.count(), 0)
