"""
Test suite for the reports module
Tests: dashboard statistics scoped to the requester's visible wines and articles
"""
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status

from cellar.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class DashboardTests(TestCase):
    """Test the dashboard endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.channel = TestDataFactory.create_channel()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(channels=[self.channel])

        visible = TestDataFactory.create_wine(channels=[self.channel])
        hidden = TestDataFactory.create_wine()
        TestDataFactory.create_bottle(visible, status='DISPONIBLE')
        TestDataFactory.create_bottle(visible, status='VENDU')
        TestDataFactory.create_bottle(hidden, status='VENDU')

        TestDataFactory.create_article(status='sold', channels=[self.channel])
        TestDataFactory.create_article(status='for_sale')

    def test_admin_dashboard(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_wines'], 2)
        self.assertEqual(response.data['total_bottles'], 3)
        self.assertEqual(response.data['bottles_by_status']['VENDU'], 2)
        self.assertEqual(response.data['total_articles'], 2)
        self.assertEqual(response.data['articles_by_status'], {
            'for_sale': 1, 'accepted': 0, 'sold': 1, 'archived': 0,
        })
        self.assertEqual(response.data['total_users'], 2)

    def test_user_dashboard_counts_visible_only(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_wines'], 1)
        self.assertEqual(response.data['total_bottles'], 2)
        self.assertEqual(response.data['bottles_by_status'], {
            'DISPONIBLE': 1, 'A_VENDRE': 0, 'VENDU': 1, 'CONSOMME': 0,
        })
        self.assertEqual(response.data['total_articles'], 1)
        self.assertEqual(response.data['articles_by_status']['sold'], 1)
        self.assertNotIn('total_users', response.data)

    def test_user_without_channels_sees_zeros(self):
        self.client.authenticate_user(TestDataFactory.create_moderator())
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['total_wines'], 0)
        self.assertEqual(response.data['total_bottles'], 0)
        self.assertEqual(response.data['total_articles'], 0)

    def test_read_failure_yields_zeros(self):
        self.client.authenticate_user(self.admin)
        with patch('cellar.reports.views.visible_queryset', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('cellar.reports.views', level='ERROR'):
                response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_wines'], 0)
        self.assertEqual(response.data['total_articles'], 0)

    def test_requires_authentication(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
