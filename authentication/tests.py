from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from authentication.core.permissions import has_store_role
from store.models import Store, StoreRole

User = get_user_model()


class UserModelTests(TestCase):

    def test_role_hierarchy(self):
        owner = User.objects.create_user(email='owner@example.com', password='pass123', role='OWNER')
        editor = User.objects.create_user(email='editor@example.com', password='pass123', role='EDITOR')
        viewer = User.objects.create_user(email='viewer@example.com', password='pass123')

        self.assertEqual(viewer.role, User.Role.VIEWER)
        self.assertTrue(owner.has_minimum_role(User.Role.EDITOR))
        self.assertTrue(editor.has_minimum_role(User.Role.EDITOR))
        self.assertFalse(viewer.has_minimum_role(User.Role.EDITOR))
        self.assertEqual(User.role_level('UNKNOWN'), -1)

    def test_superuser_is_owner(self):
        admin = User.objects.create_superuser(email='Admin@Example.COM', password='pass123')
        self.assertTrue(admin.is_owner)
        self.assertTrue(admin.is_staff)
        self.assertEqual(admin.email, 'Admin@example.com')

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='pass123')


class StoreRoleTests(TestCase):

    def setUp(self):
        self.store = Store.objects.create(name="Fashion Store", wa_number="628123456789")
        self.other = Store.objects.create(name="Tech Hub", wa_number="628555123456")
        self.editor = User.objects.create_user(email='editor@example.com', password='pass123', role='EDITOR')
        StoreRole.objects.create(user=self.editor, store=self.store, role='EDITOR')

    def test_store_role_applies_to_its_store_only(self):
        self.assertTrue(has_store_role(self.editor, self.store.pk, 'VIEWER'))
        self.assertTrue(has_store_role(self.editor, self.store.pk, 'EDITOR'))
        self.assertFalse(has_store_role(self.editor, self.store.pk, 'OWNER'))
        self.assertFalse(has_store_role(self.editor, self.other.pk, 'VIEWER'))

    def test_global_owner_passes_everywhere(self):
        owner = User.objects.create_user(email='owner@example.com', password='pass123', role='OWNER')
        self.assertTrue(has_store_role(owner, self.other.pk, 'OWNER'))
        self.assertTrue(has_store_role(owner, None, 'OWNER'))

    def test_anonymous(self):
        self.assertFalse(has_store_role(None, self.store.pk, 'VIEWER'))


class AuthEndpointTests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            email='editor@example.com', password='pass123', role='EDITOR', full_name="Sari"
        )

    def test_login_returns_tokens(self):
        resp = self.client.post('/api/auth/login/', {'email': 'editor@example.com', 'password': 'pass123'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['success'])
        self.assertEqual(resp.data['data']['user']['role'], 'EDITOR')
        self.assertIn('access_token', resp.data['data']['tokens'])
        self.assertIn('refresh_token', resp.data['data']['tokens'])

    def test_wrong_password(self):
        resp = self.client.post('/api/auth/login/', {'email': 'editor@example.com', 'password': 'nope'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data['success'])

    def test_inactive_user_cannot_log_in(self):
        self.user.is_active = False
        self.user.save()
        resp = self.client.post('/api/auth/login/', {'email': 'editor@example.com', 'password': 'pass123'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_access_token_authenticates(self):
        login = self.client.post('/api/auth/login/', {'email': 'editor@example.com', 'password': 'pass123'}, format='json')
        token = login.data['data']['tokens']['access_token']

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        resp = self.client.get('/api/auth/me/')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['email'], 'editor@example.com')
        self.assertEqual(resp.data['data']['store_roles'], [])

    def test_me_requires_authentication(self):
        resp = self.client.get('/api/auth/me/')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
