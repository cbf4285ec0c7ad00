"""
Test suite for the wines module
Tests: wine CRUD under channel visibility, photos, bottles, channel replacement
"""
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status

from cellar.core.blob_storage import BlobStorageError
from cellar.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from cellar.sales.models import WineChannel
from cellar.wines.models import Wine, WinePhoto, Bottle
from cellar.wines.views import DUPLICATE_BOTTLE_CODE


class WineAPITests(TestCase):
    """Test wine listing, creation, update and deletion"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.channel = TestDataFactory.create_channel()
        self.admin = TestDataFactory.create_admin()
        self.moderator = TestDataFactory.create_moderator(channels=[self.channel])

    def test_list_only_visible_wines_with_bottle_count(self):
        visible = TestDataFactory.create_wine(name='Château Margaux', channels=[self.channel])
        TestDataFactory.create_wine(name='Hidden', channels=[TestDataFactory.create_channel()])
        TestDataFactory.create_bottle(visible)
        TestDataFactory.create_bottle(visible)

        self.client.authenticate_user(self.moderator)
        response = self.client.get('/api/v1/wines/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['name'], 'Château Margaux')
        self.assertEqual(response.data[0]['bottle_count'], 2)
        self.assertEqual(response.data[0]['channels'], [{'id': self.channel.id, 'name': self.channel.name}])

    def test_search_by_name_producer_and_vintage(self):
        TestDataFactory.create_wine(name='Pétrus', producer='Moueix', vintage=1990)
        TestDataFactory.create_wine(name='Yquem', producer='Lur Saluces', vintage=2001)
        self.client.authenticate_user(self.admin)

        response = self.client.get('/api/v1/wines/', {'search': 'moueix'})
        self.assertEqual([w['name'] for w in response.data], ['Pétrus'])

        response = self.client.get('/api/v1/wines/', {'search': '2001'})
        self.assertEqual([w['name'] for w in response.data], ['Yquem'])

    def test_filter_by_colour_and_bottle_status(self):
        red = TestDataFactory.create_wine(colour='Rouge')
        white = TestDataFactory.create_wine(colour='Blanc')
        TestDataFactory.create_bottle(red, status='VENDU')
        TestDataFactory.create_bottle(red, status='DISPONIBLE')
        TestDataFactory.create_bottle(red, status='DISPONIBLE')
        TestDataFactory.create_bottle(white, status='DISPONIBLE')
        self.client.authenticate_user(self.admin)

        response = self.client.get('/api/v1/wines/', {'colour': 'Blanc'})
        self.assertEqual([w['id'] for w in response.data], [white.id])

        response = self.client.get('/api/v1/wines/', {'bottle_status': 'VENDU'})
        self.assertEqual([w['id'] for w in response.data], [red.id])
        self.assertEqual(response.data[0]['bottle_count'], 3)

    def test_invalid_filter_value(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/wines/', {'colour': 'Orange'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_wine_with_tags_and_channels(self):
        tag = TestDataFactory.create_tag()
        self.client.authenticate_user(self.moderator)
        response = self.client.post('/api/v1/wines/', {
            'name': 'Clos Vougeot',
            'producer': 'Domaine Leroy',
            'vintage': 2010,
            'colour': 'Rouge',
            'tag_ids': [tag.id],
            'channel_ids': [self.channel.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        wine = Wine.objects.get(name='Clos Vougeot')
        self.assertEqual(wine.created_by, self.moderator)
        self.assertEqual(list(wine.tags.all()), [tag])
        self.assertTrue(WineChannel.objects.filter(wine=wine, channel=self.channel).exists())
        self.assertEqual([c['id'] for c in response.data['channels']], [self.channel.id])

    def test_create_wine_rejects_inverted_keep_range(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/wines/', {
            'name': 'Test', 'optimal_keep_min': 10, 'optimal_keep_max': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('optimal_keep_max', response.data)

    def test_standard_user_cannot_write(self):
        wine = TestDataFactory.create_wine(channels=[self.channel])
        user = TestDataFactory.create_user(channels=[self.channel])
        self.client.authenticate_user(user)

        response = self.client.get(f'/api/v1/wines/{wine.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post('/api/v1/wines/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.patch(f'/api/v1/wines/{wine.id}/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_hidden_wine_answers_404(self):
        wine = TestDataFactory.create_wine(channels=[TestDataFactory.create_channel()])
        self.client.authenticate_user(self.moderator)
        response = self.client.get(f'/api/v1/wines/{wine.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_wine(self):
        wine = TestDataFactory.create_wine(channels=[self.channel])
        self.client.authenticate_user(self.moderator)
        response = self.client.patch(f'/api/v1/wines/{wine.id}/', {'region': 'Bourgogne'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        wine.refresh_from_db()
        self.assertEqual(wine.region, 'Bourgogne')
        # Channels are untouched when channel_ids is omitted
        self.assertTrue(WineChannel.objects.filter(wine=wine, channel=self.channel).exists())

    @patch('cellar.core.blob_storage.remove_blob', return_value=True)
    def test_delete_wine_removes_photo_blobs(self, mock_remove):
        wine = TestDataFactory.create_wine(channels=[self.channel])
        WinePhoto.objects.create(wine=wine, url='https://x/1.jpg', storage_path=f'{wine.id}/1.jpg')
        WinePhoto.objects.create(wine=wine, url='https://x/2.jpg', storage_path=f'{wine.id}/2.jpg', position=1)
        TestDataFactory.create_bottle(wine)

        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/wines/{wine.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(mock_remove.call_count, 2)
        self.assertFalse(Wine.objects.filter(pk=wine.id).exists())
        self.assertEqual(Bottle.objects.count(), 0)
        self.assertEqual(WineChannel.objects.count(), 0)


class WinePhotoAPITests(TestCase):
    """Test photo upload and removal on wines"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)
        self.wine = TestDataFactory.create_wine()

    @patch('cellar.core.blob_storage.upload_blob')
    def test_upload_photos_continue_positions(self, mock_upload):
        mock_upload.side_effect = lambda container, path, data, content_type: f'https://blob/{container}/{path}'
        WinePhoto.objects.create(wine=self.wine, url='https://blob/old.jpg', storage_path='old.jpg', position=4)

        response = self.client.post(f'/api/v1/wines/{self.wine.id}/photos/', {
            'photos': [
                TestDataFactory.create_image_file('a.png', image_format='PNG'),
                TestDataFactory.create_image_file('b.jpg'),
            ],
            'comments': ['Etiquette', 'Capsule'],
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([p['position'] for p in response.data], [5, 6])
        self.assertEqual([p['comment'] for p in response.data], ['Etiquette', 'Capsule'])

        # Wine photos are stored as jpg under the wine id
        container, path = mock_upload.call_args_list[0].args[:2]
        self.assertEqual(container, 'photos-vins')
        self.assertTrue(path.startswith(f'{self.wine.id}/'))
        self.assertTrue(path.endswith('-0.jpg'))

    @patch('cellar.core.blob_storage.upload_blob')
    def test_upload_failure_reports_attached_photos(self, mock_upload):
        mock_upload.side_effect = ['https://blob/1.jpg', BlobStorageError('Upload failed')]
        response = self.client.post(f'/api/v1/wines/{self.wine.id}/photos/', {
            'photos': [TestDataFactory.create_image_file('a.jpg'), TestDataFactory.create_image_file('b.jpg')],
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['error'], 'Photo upload failed')
        self.assertEqual(len(response.data['attached']), 1)
        self.assertEqual(self.wine.photos.count(), 1)

    @patch('cellar.core.blob_storage.upload_blob')
    def test_invalid_image_rejected(self, mock_upload):
        bogus = SimpleUploadedFile('bogus.jpg', b'not an image', content_type='image/jpeg')
        response = self.client.post(f'/api/v1/wines/{self.wine.id}/photos/', {'photos': [bogus]}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_upload.assert_not_called()

    def test_upload_without_files(self):
        response = self.client.post(f'/api/v1/wines/{self.wine.id}/photos/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('cellar.core.blob_storage.remove_blob', return_value=False)
    def test_delete_photo_even_if_blob_removal_fails(self, mock_remove):
        photo = WinePhoto.objects.create(wine=self.wine, url='https://blob/1.jpg', storage_path='1/1.jpg')
        response = self.client.delete(f'/api/v1/wines/{self.wine.id}/photos/{photo.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        mock_remove.assert_called_once_with('photos-vins', '1/1.jpg')
        self.assertFalse(WinePhoto.objects.filter(pk=photo.id).exists())

    def test_edit_photo_comment(self):
        photo = WinePhoto.objects.create(wine=self.wine, url='https://blob/1.jpg', storage_path='1/1.jpg')
        response = self.client.patch(
            f'/api/v1/wines/{self.wine.id}/photos/{photo.id}/', {'comment': 'Contre-étiquette'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        photo.refresh_from_db()
        self.assertEqual(photo.comment, 'Contre-étiquette')


class BottleAPITests(TestCase):
    """Test bottle batches and bottle edits"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.moderator = TestDataFactory.create_moderator()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.wine = TestDataFactory.create_wine()

    def test_single_bottle_uses_base_code(self):
        response = self.client.post(f'/api/v1/wines/{self.wine.id}/bottles/', {'code_base': 'MRG90'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([b['code'] for b in response.data], ['MRG90'])
        self.assertEqual(response.data[0]['status'], 'DISPONIBLE')
        self.assertEqual(response.data[0]['condition'], 'EXCELLENT')

    def test_batch_codes_are_numbered(self):
        response = self.client.post(f'/api/v1/wines/{self.wine.id}/bottles/', {
            'code_base': 'MRG90', 'quantity': 3, 'cellar_location': 'Casier A', 'fill_level': 'HAUT_EPAULE',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([b['code'] for b in response.data], ['MRG90-001', 'MRG90-002', 'MRG90-003'])
        self.assertEqual(self.wine.bottles.filter(fill_level='HAUT_EPAULE', cellar_location='Casier A').count(), 3)

    def test_duplicate_code_rejects_whole_batch(self):
        TestDataFactory.create_bottle(self.wine, code='MRG90-002')
        response = self.client.post(f'/api/v1/wines/{self.wine.id}/bottles/', {
            'code_base': 'MRG90', 'quantity': 3,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], DUPLICATE_BOTTLE_CODE)
        self.assertEqual(self.wine.bottles.count(), 1)

    def test_list_bottles(self):
        TestDataFactory.create_bottle(self.wine, code='B')
        TestDataFactory.create_bottle(self.wine, code='A')
        response = self.client.get(f'/api/v1/wines/{self.wine.id}/bottles/')
        self.assertEqual([b['code'] for b in response.data], ['A', 'B'])

    def test_update_bottle_status(self):
        bottle = TestDataFactory.create_bottle(self.wine)
        response = self.client.patch(f'/api/v1/bottles/{bottle.id}/', {'status': 'VENDU'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        bottle.refresh_from_db()
        self.assertEqual(bottle.status, 'VENDU')

    def test_update_bottle_to_existing_code(self):
        TestDataFactory.create_bottle(self.wine, code='TAKEN')
        bottle = TestDataFactory.create_bottle(self.wine)
        response = self.client.patch(f'/api/v1/bottles/{bottle.id}/', {'code': 'TAKEN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_bottle(self):
        bottle = TestDataFactory.create_bottle(self.wine)
        response = self.client.delete(f'/api/v1/bottles/{bottle.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Bottle.objects.filter(pk=bottle.id).exists())

    def test_bottle_of_hidden_wine_answers_404(self):
        bottle = TestDataFactory.create_bottle(self.wine)
        self.client.authenticate_user(self.moderator)
        response = self.client.get(f'/api/v1/bottles/{bottle.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class WineChannelAPITests(TestCase):
    """Test reading and replacing a wine's channels"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.c1 = TestDataFactory.create_channel(name='Brocante')
        self.c2 = TestDataFactory.create_channel(name='Enchères')
        self.wine = TestDataFactory.create_wine(channels=[self.c1])

    def test_get_channels(self):
        response = self.client.get(f'/api/v1/wines/{self.wine.id}/channels/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['Brocante'])

    def test_replace_channels(self):
        response = self.client.put(
            f'/api/v1/wines/{self.wine.id}/channels/', {'channel_ids': [self.c2.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['id'] for c in response.data], [self.c2.id])
        self.assertEqual(
            set(WineChannel.objects.filter(wine=self.wine).values_list('channel_id', flat=True)), {self.c2.id}
        )

    def test_clear_channels(self):
        response = self.client.put(f'/api/v1/wines/{self.wine.id}/channels/', {'channel_ids': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_unknown_channel_rejected(self):
        response = self.client.put(
            f'/api/v1/wines/{self.wine.id}/channels/', {'channel_ids': [999999]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
