"""
Test suite for the core module
Tests: roles, authentication, profile flags, user administration, admin provisioning,
error handling and blob storage
"""
from io import StringIO
from unittest.mock import patch, MagicMock

from azure.core.exceptions import ResourceNotFoundError, ServiceRequestError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status

from cellar.core import blob_storage
from cellar.core.exceptions import api_exception_handler
from cellar.core.models import User
from cellar.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from cellar.sales.models import UserChannel


class UserRoleTests(TestCase):
    """Test the role hierarchy helpers"""

    def test_admin_role(self):
        user = TestDataFactory.create_admin()
        self.assertTrue(user.is_admin)
        self.assertTrue(user.is_moderator_or_admin)

    def test_moderator_role(self):
        user = TestDataFactory.create_moderator()
        self.assertFalse(user.is_admin)
        self.assertTrue(user.is_moderator_or_admin)
        self.assertTrue(user.has_role_at_least('standard'))

    def test_standard_role(self):
        user = TestDataFactory.create_user()
        self.assertFalse(user.is_admin)
        self.assertFalse(user.is_moderator_or_admin)

    def test_superuser_counts_as_admin(self):
        """A superuser with the default role still has admin rights"""
        user = TestDataFactory.create_user(is_superuser=True)
        self.assertEqual(user.role, 'standard')
        self.assertTrue(user.is_admin)

    def test_str_prefers_full_name(self):
        user = TestDataFactory.create_user(email='jean@test.com')
        self.assertEqual(str(user), 'jean@test.com')
        user.full_name = 'Jean Dupont'
        self.assertEqual(str(user), 'Jean Dupont')


class AuthenticationTests(TestCase):
    """Test login, refresh and the current-user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_login_confirmed_user(self):
        user = TestDataFactory.create_user(username='alice@test.com', email='alice@test.com')
        response = self.client.post('/api/v1/auth/login/', {
            'username': user.username, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_unconfirmed_user_rejected(self):
        user = TestDataFactory.create_user(email_confirmed=False)
        response = self.client.post('/api/v1/auth/login/', {
            'username': user.username, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_inactive_user_rejected(self):
        user = TestDataFactory.create_user(is_active=False)
        response = self.client.post('/api/v1/auth/login/', {
            'username': user.username, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_wrong_password(self):
        user = TestDataFactory.create_user()
        response = self.client.post('/api/v1/auth/login/', {
            'username': user.username, 'password': 'wrong-password'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        user = TestDataFactory.create_user()
        login = self.client.post('/api/v1/auth/login/', {
            'username': user.username, 'password': 'testpass123'
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_flags_for_standard_user(self):
        channel = TestDataFactory.create_channel()
        user = TestDataFactory.create_user(channels=[channel])
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'standard')
        self.assertFalse(response.data['is_admin'])
        self.assertFalse(response.data['can_edit'])
        self.assertFalse(response.data['can_manage_users'])
        self.assertEqual(response.data['channel_ids'], [channel.id])

    def test_me_flags_for_moderator(self):
        self.client.authenticate_user(TestDataFactory.create_moderator())
        response = self.client.get('/api/v1/auth/me/')
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(response.data['can_edit'])
        self.assertFalse(response.data['can_manage_users'])

    def test_me_flags_for_admin(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/auth/me/')
        self.assertTrue(response.data['is_admin'])
        self.assertTrue(response.data['can_edit'])
        self.assertTrue(response.data['can_manage_users'])


class UserAdministrationTests(TestCase):
    """Test user listing and deletion"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_users(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_list_users_forbidden_for_moderator(self):
        self.client.authenticate_user(TestDataFactory.create_moderator())
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_user(self):
        user = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=user.id).exists())

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.id).exists())


class AdminProvisioningTests(TestCase):
    """Test the admin create-user, update-user and confirm-user endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.channel1 = TestDataFactory.create_channel()
        self.channel2 = TestDataFactory.create_channel()

    def test_create_user(self):
        response = self.client.post('/api/v1/admin/create-user/', {
            'email': 'New.User@test.com',
            'password': 'secret1',
            'full_name': 'New User',
            'role': 'moderator',
            'channel_ids': [self.channel1.id, self.channel2.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])

        user = User.objects.get(email='new.user@test.com')
        self.assertEqual(user.username, 'new.user@test.com')
        self.assertEqual(user.role, 'moderator')
        self.assertTrue(user.is_active)
        self.assertTrue(user.email_confirmed)
        self.assertTrue(user.check_password('secret1'))
        self.assertEqual(
            set(UserChannel.objects.filter(user=user).values_list('channel_id', flat=True)),
            {self.channel1.id, self.channel2.id}
        )

    def test_create_user_defaults_to_standard_role(self):
        response = self.client.post('/api/v1/admin/create-user/', {
            'email': 'plain@test.com', 'password': 'secret1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='plain@test.com').role, 'standard')

    def test_create_user_requires_email_and_password(self):
        response = self.client.post('/api/v1/admin/create-user/', {'email': 'nopass@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/admin/create-user/', {'password': 'secret1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='nopass@test.com').exists())

    def test_create_user_short_password(self):
        response = self.client.post('/api/v1/admin/create-user/', {
            'email': 'short@test.com', 'password': '12345'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_create_user_duplicate_email(self):
        TestDataFactory.create_user(email='taken@test.com')
        response = self.client.post('/api/v1/admin/create-user/', {
            'email': 'taken@test.com', 'password': 'secret1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_create_user_ignores_unknown_channels(self):
        response = self.client.post('/api/v1/admin/create-user/', {
            'email': 'partial@test.com', 'password': 'secret1',
            'channel_ids': [self.channel1.id, 999999],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['channel_ids'], [self.channel1.id])

    def test_create_user_forbidden_for_non_admin(self):
        self.client.authenticate_user(TestDataFactory.create_moderator())
        response = self.client.post('/api/v1/admin/create-user/', {
            'email': 'x@test.com', 'password': 'secret1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_user_replaces_channels(self):
        user = TestDataFactory.create_user(channels=[self.channel1])
        response = self.client.post('/api/v1/admin/update-user/', {
            'user_id': user.id,
            'role': 'moderator',
            'full_name': 'Renamed',
            'channel_ids': [self.channel2.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.role, 'moderator')
        self.assertEqual(user.full_name, 'Renamed')
        self.assertEqual(
            list(UserChannel.objects.filter(user=user).values_list('channel_id', flat=True)),
            [self.channel2.id]
        )

    def test_update_user_without_channel_ids_keeps_channels(self):
        user = TestDataFactory.create_user(channels=[self.channel1])
        self.client.post('/api/v1/admin/update-user/', {'user_id': user.id, 'role': 'moderator'}, format='json')
        self.assertTrue(UserChannel.objects.filter(user=user, channel=self.channel1).exists())

    def test_update_user_email_and_password(self):
        user = TestDataFactory.create_user()
        response = self.client.post('/api/v1/admin/update-user/', {
            'user_id': user.id, 'email': 'changed@test.com', 'password': 'newpass1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.email, 'changed@test.com')
        self.assertEqual(user.username, 'changed@test.com')
        self.assertTrue(user.check_password('newpass1'))

    def test_update_unknown_user(self):
        response = self.client.post('/api/v1/admin/update-user/', {'user_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_confirm_user(self):
        user = TestDataFactory.create_user(email_confirmed=False)
        response = self.client.post('/api/v1/admin/confirm-user/', {'user_id': user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.email_confirmed)


class CreateAdminCommandTests(TestCase):
    """Test the create_admin management command"""

    def test_creates_admin(self):
        out = StringIO()
        call_command('create_admin', 'boss@test.com', 'secret1', '--full-name', 'The Boss', stdout=out)
        user = User.objects.get(email='boss@test.com')
        self.assertEqual(user.role, 'admin')
        self.assertTrue(user.email_confirmed)
        self.assertTrue(user.check_password('secret1'))
        self.assertIn('Created admin account', out.getvalue())

    def test_promotes_existing_user(self):
        TestDataFactory.create_user(email='existing@test.com')
        call_command('create_admin', 'existing@test.com', 'secret1', stdout=StringIO())
        self.assertEqual(User.objects.get(email='existing@test.com').role, 'admin')

    def test_rejects_short_password(self):
        with self.assertRaises(CommandError):
            call_command('create_admin', 'boss@test.com', '123', stdout=StringIO())


class ExceptionHandlerTests(TestCase):
    """Test the API exception handler"""

    def test_unexpected_exception_returns_500(self):
        with self.assertLogs('cellar.core.exceptions', level='ERROR'):
            response = api_exception_handler(RuntimeError('boom'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Internal server error'})


@override_settings(
    AZURE_STORAGE_CONNECTION_STRING='UseDevelopmentStorage=true',
    AZURE_STORAGE_ACCOUNT_NAME='cellaraccount',
)
class BlobStorageTests(TestCase):
    """Test the blob storage client without contacting Azure"""

    def test_public_url(self):
        url = blob_storage.get_public_url('photos-vins', '12/1700000000000-0.jpg')
        self.assertEqual(url, 'https://cellaraccount.blob.core.windows.net/photos-vins/12/1700000000000-0.jpg')

    @patch('cellar.core.blob_storage.BlobServiceClient')
    def test_upload_blob(self, service_cls):
        blob_client = MagicMock()
        service_cls.from_connection_string.return_value.get_blob_client.return_value = blob_client
        url = blob_storage.upload_blob('photos-vins', '1/1-0.jpg', b'data', 'image/jpeg')
        self.assertTrue(url.endswith('/photos-vins/1/1-0.jpg'))
        blob_client.upload_blob.assert_called_once()

    @patch('cellar.core.blob_storage.BlobServiceClient')
    def test_upload_failure_raises(self, service_cls):
        blob_client = MagicMock()
        blob_client.upload_blob.side_effect = ServiceRequestError('unreachable')
        service_cls.from_connection_string.return_value.get_blob_client.return_value = blob_client
        with self.assertRaises(blob_storage.BlobStorageError):
            blob_storage.upload_blob('photos-vins', '1/1-0.jpg', b'data')

    @patch('cellar.core.blob_storage.BlobServiceClient')
    def test_remove_missing_blob_is_success(self, service_cls):
        blob_client = MagicMock()
        blob_client.delete_blob.side_effect = ResourceNotFoundError('gone')
        service_cls.from_connection_string.return_value.get_blob_client.return_value = blob_client
        self.assertTrue(blob_storage.remove_blob('photos-vins', '1/1-0.jpg'))

    @override_settings(AZURE_STORAGE_CONNECTION_STRING='', AZURE_STORAGE_ACCOUNT_KEY='')
    def test_remove_without_configuration_is_logged(self):
        self.assertFalse(blob_storage.remove_blob('photos-vins', '1/1-0.jpg'))
