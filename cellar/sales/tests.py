"""
Test suite for the sales module
Tests: channel-based visibility, bulk channel assignment, channel CRUD, cascades
and the assignment listing/diagnostics endpoints
"""
from unittest.mock import patch

from django.db import DatabaseError, connection
from django.test import TestCase
from rest_framework import status

from cellar.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from cellar.sales.access import visible_wines, visible_articles, visible_entities, is_visible, user_channel_ids
from cellar.sales.bulk import bulk_assign, BulkAssignmentError, set_entity_channels
from cellar.sales.models import SalesChannel, WineChannel, ArticleChannel, UserChannel


def article_pairs():
    return set(ArticleChannel.objects.values_list('article_id', 'channel_id'))


def wine_pairs():
    return set(WineChannel.objects.values_list('wine_id', 'channel_id'))


class AccessFilterTests(TestCase):
    """Test which wines and articles each user can see"""

    def setUp(self):
        self.c1 = TestDataFactory.create_channel(name='Brocantes Antiquités')
        self.c2 = TestDataFactory.create_channel(name='Hôtel de vente')
        self.admin = TestDataFactory.create_admin()

    def test_admin_sees_everything(self):
        linked = TestDataFactory.create_wine(channels=[self.c1])
        unlinked = TestDataFactory.create_wine()
        self.assertEqual({w.id for w in visible_wines(self.admin)}, {linked.id, unlinked.id})

    def test_user_without_channels_sees_nothing(self):
        user = TestDataFactory.create_user()
        TestDataFactory.create_wine(channels=[self.c1])
        TestDataFactory.create_article(channels=[self.c1, self.c2])
        self.assertEqual(visible_wines(user), [])
        self.assertEqual(visible_articles(user), [])

    def test_user_sees_articles_sharing_a_channel(self):
        """U{C1}, A1{C1,C2}, A2{C2}: U sees A1 and not A2"""
        user = TestDataFactory.create_user(channels=[self.c1])
        a1 = TestDataFactory.create_article(name='A1', channels=[self.c1, self.c2])
        a2 = TestDataFactory.create_article(name='A2', channels=[self.c2])
        visible = visible_articles(user)
        self.assertEqual([a.id for a in visible], [a1.id])
        self.assertTrue(is_visible(user, a1))
        self.assertFalse(is_visible(user, a2))

    def test_user_sees_union_of_channels(self):
        user = TestDataFactory.create_user(channels=[self.c1, self.c2])
        w1 = TestDataFactory.create_wine(channels=[self.c1])
        w2 = TestDataFactory.create_wine(channels=[self.c2])
        w3 = TestDataFactory.create_wine(channels=[self.c1, self.c2])
        TestDataFactory.create_wine(channels=[TestDataFactory.create_channel()])
        visible = visible_wines(user)
        self.assertEqual({w.id for w in visible}, {w1.id, w2.id, w3.id})
        # Entities in several shared channels are listed once
        self.assertEqual(len(visible), 3)

    def test_entity_without_channel_only_visible_to_admin(self):
        user = TestDataFactory.create_user(channels=[self.c1])
        article = TestDataFactory.create_article()
        self.assertEqual(visible_articles(user), [])
        self.assertTrue(is_visible(self.admin, article))
        self.assertFalse(is_visible(user, article))

    def test_visible_entities_carry_their_channels(self):
        user = TestDataFactory.create_user(channels=[self.c1])
        TestDataFactory.create_wine(channels=[self.c1, self.c2])
        wine = visible_wines(user)[0]
        self.assertEqual({link.channel.name for link in wine.channel_links.all()}, {self.c1.name, self.c2.name})

    def test_read_failure_yields_empty_list(self):
        user = TestDataFactory.create_user(channels=[self.c1])
        TestDataFactory.create_wine(channels=[self.c1])
        with patch('cellar.sales.access.user_channel_ids', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('cellar.sales.access', level='ERROR'):
                self.assertEqual(visible_entities(user, 'wine'), [])

    def test_user_channel_ids(self):
        user = TestDataFactory.create_user(channels=[self.c2])
        self.assertEqual(user_channel_ids(user), [self.c2.id])


class BulkAssignmentTests(TestCase):
    """Test bulk add/remove of channel assignments"""

    def setUp(self):
        self.c1 = TestDataFactory.create_channel()
        self.c2 = TestDataFactory.create_channel()
        self.a1 = TestDataFactory.create_article()
        self.a2 = TestDataFactory.create_article()

    def test_add_then_remove_restores_join_table(self):
        ArticleChannel.objects.create(article=self.a1, channel=self.c2)
        before = article_pairs()
        bulk_assign('article', [self.a2.id], [self.c1.id, self.c2.id], 'add')
        bulk_assign('article', [self.a2.id], [self.c1.id, self.c2.id], 'remove')
        self.assertEqual(article_pairs(), before)

    def test_re_adding_existing_pair_is_noop(self):
        bulk_assign('article', [self.a1.id], [self.c1.id], 'add')
        result = bulk_assign('article', [self.a1.id], [self.c1.id], 'add')
        self.assertEqual(result['affected'], 0)
        self.assertEqual(ArticleChannel.objects.filter(article=self.a1, channel=self.c1).count(), 1)

    def test_add_all_then_remove_one_pair(self):
        result = bulk_assign('article', [self.a1.id, self.a2.id], [self.c1.id, self.c2.id], 'add')
        self.assertEqual(result['requested_pairs'], 4)
        self.assertEqual(result['affected'], 4)
        result = bulk_assign('article', [self.a1.id], [self.c1.id], 'remove')
        self.assertEqual(result['affected'], 1)
        self.assertEqual(article_pairs(), {
            (self.a1.id, self.c2.id),
            (self.a2.id, self.c1.id),
            (self.a2.id, self.c2.id),
        })

    def test_remove_leaves_other_rows(self):
        wine = TestDataFactory.create_wine(channels=[self.c1, self.c2])
        other = TestDataFactory.create_wine(channels=[self.c1])
        bulk_assign('wine', [wine.id], [self.c1.id], 'remove')
        self.assertEqual(wine_pairs(), {(wine.id, self.c2.id), (other.id, self.c1.id)})

    def test_empty_sets_rejected(self):
        with self.assertRaises(BulkAssignmentError):
            bulk_assign('article', [], [self.c1.id], 'add')
        with self.assertRaises(BulkAssignmentError):
            bulk_assign('article', [self.a1.id], [], 'add')
        self.assertEqual(article_pairs(), set())

    def test_unknown_entity_type_or_action_rejected(self):
        with self.assertRaises(BulkAssignmentError):
            bulk_assign('bottle', [self.a1.id], [self.c1.id], 'add')
        with self.assertRaises(BulkAssignmentError):
            bulk_assign('article', [self.a1.id], [self.c1.id], 'toggle')

    def test_unknown_ids_rejected_before_any_write(self):
        with self.assertRaises(BulkAssignmentError):
            bulk_assign('article', [self.a1.id, 999999], [self.c1.id], 'add')
        with self.assertRaises(BulkAssignmentError):
            bulk_assign('article', [self.a1.id], [self.c1.id, 999999], 'add')
        self.assertEqual(article_pairs(), set())

    def test_set_entity_channels_replaces_set(self):
        ArticleChannel.objects.create(article=self.a1, channel=self.c1)
        set_entity_channels('article', self.a1, [self.c2.id])
        self.assertEqual(article_pairs(), {(self.a1.id, self.c2.id)})


class ChannelCascadeTests(TestCase):
    """Deleting a channel removes it from every join table"""

    def test_delete_channel_removes_all_assignments(self):
        channel = TestDataFactory.create_channel()
        keep = TestDataFactory.create_channel()
        TestDataFactory.create_user(channels=[channel, keep])
        TestDataFactory.create_wine(channels=[channel, keep])
        TestDataFactory.create_article(channels=[channel])

        channel.delete()

        self.assertFalse(WineChannel.objects.filter(channel_id=channel.id).exists())
        self.assertFalse(ArticleChannel.objects.filter(channel_id=channel.id).exists())
        self.assertFalse(UserChannel.objects.filter(channel_id=channel.id).exists())
        self.assertEqual(WineChannel.objects.filter(channel=keep).count(), 1)
        self.assertEqual(UserChannel.objects.filter(channel=keep).count(), 1)


class SalesChannelAPITests(TestCase):
    """Test sales channel endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_any_user_lists_channels(self):
        TestDataFactory.create_channel(name='Hôtel de vente')
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/sales-channels/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['name'], 'Hôtel de vente')

    def test_admin_creates_channel(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/sales-channels/', {
            'name': 'Salle des ventes', 'description': 'Vente aux enchères'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(SalesChannel.objects.filter(name='Salle des ventes').exists())

    def test_duplicate_channel_name(self):
        TestDataFactory.create_channel(name='Salle des ventes')
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/sales-channels/', {'name': 'Salle des ventes'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_moderator_cannot_create_channel(self):
        self.client.authenticate_user(TestDataFactory.create_moderator())
        response = self.client.post('/api/v1/sales-channels/', {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_deletes_channel(self):
        channel = TestDataFactory.create_channel()
        TestDataFactory.create_wine(channels=[channel])
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/sales-channels/{channel.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(WineChannel.objects.count(), 0)


class ChannelAssignmentAPITests(TestCase):
    """Test the bulk assignment, listing and diagnostics endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)
        self.c1 = TestDataFactory.create_channel()
        self.c2 = TestDataFactory.create_channel()

    def test_bulk_add_and_listing(self):
        w1 = TestDataFactory.create_wine()
        w2 = TestDataFactory.create_wine()
        response = self.client.post('/api/v1/channel-assignments/bulk/', {
            'entity_type': 'wine', 'action': 'add',
            'entity_ids': [w1.id, w2.id], 'channel_ids': [self.c1.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['affected'], 2)

        response = self.client.get('/api/v1/channel-assignments/?entity_type=wine')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        listing = {row['id']: row['channel_ids'] for row in response.data}
        self.assertEqual(listing, {w1.id: [self.c1.id], w2.id: [self.c1.id]})

    def test_bulk_validation_error(self):
        article = TestDataFactory.create_article()
        response = self.client.post('/api/v1/channel-assignments/bulk/', {
            'entity_type': 'article', 'action': 'add',
            'entity_ids': [article.id], 'channel_ids': [],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_bulk_forbidden_for_moderator(self):
        self.client.authenticate_user(TestDataFactory.create_moderator())
        response = self.client.post('/api/v1/channel-assignments/bulk/', {
            'entity_type': 'wine', 'action': 'add', 'entity_ids': [1], 'channel_ids': [1],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_listing_rejects_unknown_entity_type(self):
        response = self.client.get('/api/v1/channel-assignments/?entity_type=bottle')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_diagnostics_reports_orphans(self):
        UserChannel.objects.create(user=self.admin, channel=self.c1)
        kept = TestDataFactory.create_article(channels=[self.c1])
        gone = TestDataFactory.create_article(channels=[self.c2])
        with connection.cursor() as cursor:
            cursor.execute('DELETE FROM standard_articles WHERE id = %s', [gone.id])

        response = self.client.get('/api/v1/channel-assignments/diagnostics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['id'] for c in response.data['user_channels']], [self.c1.id])
        presence = {row['article_id']: row['article_exists'] for row in response.data['article_channels']}
        self.assertEqual(presence, {kept.id: True, gone.id: False})
        self.assertEqual(response.data['orphaned_count'], 1)
        self.assertEqual([a['id'] for a in response.data['visible_articles']], [kept.id])
