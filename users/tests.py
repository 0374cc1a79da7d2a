from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from .models import Profile
from .permissions import ResourcePermission

User = get_user_model()


class ResourcePermissionTests(SimpleTestCase):
    def check(self, role, method, resource, action=None, superuser=False):
        user = SimpleNamespace(is_authenticated=True, is_superuser=superuser, profile=SimpleNamespace(role=role))
        request = SimpleNamespace(user=user, method=method)
        view = SimpleNamespace(permission_resource=resource, action=action, action_resources={'degrees': 'degrees'})
        return ResourcePermission().has_permission(request, view)

    def test_role_table(self):
        self.assertTrue(self.check('viewer', 'GET', 'users'))
        self.assertFalse(self.check('viewer', 'POST', 'content'))
        self.assertTrue(self.check('editor', 'PATCH', 'content'))
        self.assertFalse(self.check('editor', 'DELETE', 'users'))
        self.assertTrue(self.check('admin', 'DELETE', 'users'))
        self.assertFalse(self.check('unknown', 'GET', 'users'))

    def test_action_resource_overrides_view_resource(self):
        self.assertTrue(self.check('editor', 'PATCH', 'users', action='degrees'))
        self.assertFalse(self.check('editor', 'PATCH', 'users', action='partial_update'))

    def test_superuser_passes(self):
        self.assertTrue(self.check('viewer', 'DELETE', 'users', superuser=True))


class CurrentUserTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_new_users_get_a_viewer_profile(self):
        user = User.objects.create_user('servant', password='pass')
        self.assertEqual(user.profile.role, 'viewer')
        admin = User.objects.create_superuser('root', 'root@example.com', 'pass')
        self.assertEqual(admin.profile.role, 'admin')

    def test_me(self):
        user = User.objects.create_user('servant', password='pass')
        self.client.force_authenticate(user)
        res = self.client.get('/api/users/me/')
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual(data['user']['username'], 'servant')
        self.assertEqual(data['profile']['role'], 'viewer')
        self.assertEqual(data['profile']['permissions']['degrees'], ['view'])

    def test_me_update(self):
        user = User.objects.create_user('servant', password='pass')
        self.client.force_authenticate(user)
        res = self.client.patch('/api/users/me/', {'first_name': 'Mina', 'church': 'St Mark', 'role': 'admin'},
                                format='json')
        self.assertEqual(res.status_code, 200)
        profile = Profile.objects.get(user=user)
        self.assertEqual(profile.church, 'St Mark')
        self.assertEqual(profile.role, 'viewer')

    def test_token_login(self):
        User.objects.create_user('servant', password='pass')
        res = self.client.post('/api/token/', {'username': 'servant', 'password': 'pass'}, format='json')
        self.assertEqual(res.status_code, 200)
        token = res.json()['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(self.client.get('/api/users/me/').status_code, 200)

    def test_anonymous(self):
        self.assertEqual(self.client.get('/api/users/me/').status_code, 401)
