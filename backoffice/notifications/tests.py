"""
Test suite for the notifications module
Tests: settings fallback chain, per-role upsert and sound uploads
"""
import shutil
import tempfile

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.notifications.models import NotificationSettings, NotificationSound


class NotificationSettingsTests(TestCase):
    """Notification profiles"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.manager = TestDataFactory.create_user(role='MANAGER')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_builtin_defaults_when_nothing_stored(self):
        response = self.client.get('/api/v1/notifications/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['id'])
        self.assertIsNone(response.data['role'])
        self.assertEqual(response.data['sound_volume'], 70)
        self.assertEqual(response.data['sound_type'], 'beep')
        self.assertEqual(response.data['check_interval_seconds'], 60)
        self.assertFalse(response.data['desktop_notifications'])

    def test_falls_back_to_default_profile(self):
        NotificationSettings.objects.create(role=None, sound_volume=30)
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/notifications/settings/')
        self.assertEqual(response.data['sound_volume'], 30)

    def test_role_profile_preferred(self):
        NotificationSettings.objects.create(role=None, sound_volume=30)
        NotificationSettings.objects.create(role='MANAGER', sound_volume=90)
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/notifications/settings/')
        self.assertEqual(response.data['role'], 'MANAGER')
        self.assertEqual(response.data['sound_volume'], 90)

    def test_by_role_returns_defaults_carrying_role(self):
        response = self.client.get('/api/v1/notifications/settings/by-role/', {'role': 'SUPPORT'})
        self.assertEqual(response.data['role'], 'SUPPORT')
        self.assertIsNone(response.data['id'])

    def test_patch_creates_then_updates_only_supplied_fields(self):
        response = self.client.patch('/api/v1/notifications/settings/',
                                     {'role': 'SUPPORT', 'sound_type': 'chime'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sound_type'], 'chime')
        self.assertEqual(response.data['sound_volume'], 70)

        response = self.client.patch('/api/v1/notifications/settings/',
                                     {'role': 'SUPPORT', 'sound_volume': 10}, format='json')
        self.assertEqual(response.data['sound_type'], 'chime')
        self.assertEqual(response.data['sound_volume'], 10)
        self.assertEqual(NotificationSettings.objects.filter(role='SUPPORT').count(), 1)

    def test_patch_default_profile(self):
        self.client.patch('/api/v1/notifications/settings/', {'role': 'default', 'desktop_notifications': True},
                          format='json')
        self.client.patch('/api/v1/notifications/settings/', {'notify_on_orders': False}, format='json')
        profile = NotificationSettings.objects.get(role__isnull=True)
        self.assertTrue(profile.desktop_notifications)
        self.assertFalse(profile.notify_on_orders)

    def test_patch_validates_ranges(self):
        response = self.client.patch('/api/v1/notifications/settings/', {'check_interval_seconds': 10},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch('/api/v1/notifications/settings/', {'sound_volume': 101}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(NotificationSettings.objects.exists())

    def test_patch_unknown_role_rejected(self):
        response = self.client.patch('/api/v1/notifications/settings/', {'role': 'PILOT'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_requires_admin(self):
        self.client.authenticate_user(self.manager)
        response = self.client.patch('/api/v1/notifications/settings/', {'sound_volume': 10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_all_profiles_default_first(self):
        NotificationSettings.objects.create(role='SUPPORT')
        NotificationSettings.objects.create(role=None)
        NotificationSettings.objects.create(role='ADMIN')
        response = self.client.get('/api/v1/notifications/settings/all/')
        self.assertEqual([p['role'] for p in response.data], [None, 'ADMIN', 'SUPPORT'])


@override_settings(API_BASE_URL='https://api.example.com/')
class NotificationSoundTests(TestCase):
    """Custom sound uploads"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root)
        self.settings_override.enable()
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _upload(self, filename='ding.mp3', content=b'ID3fake-mp3-data', **extra):
        data = {'file': SimpleUploadedFile(filename, content, content_type='audio/mpeg')}
        data.update(extra)
        return self.client.post('/api/v1/notifications/sounds/', data, format='multipart')

    def test_upload_sound(self):
        response = self._upload(filename='Ding.MP3', name='Office ding')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Office ding')
        self.assertTrue(response.data['file_url'].startswith('https://api.example.com/media/notification-sounds/sound-'))
        self.assertTrue(response.data['file_url'].endswith('.mp3'))

    def test_upload_name_defaults_to_filename(self):
        response = self._upload(filename='bell.wav')
        self.assertEqual(response.data['name'], 'bell.wav')

    def test_upload_rejects_other_types(self):
        response = self._upload(filename='virus.exe')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(NotificationSound.objects.exists())

    @override_settings(NOTIFICATION_SOUND_MAX_SIZE=10)
    def test_upload_rejects_large_files(self):
        response = self._upload(content=b'x' * 11)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_sound_removes_file(self):
        response = self._upload()
        stored = response.data['file_url'].split('/media/', 1)[1]
        self.assertTrue(default_storage.exists(stored))

        response = self.client.delete(f"/api/v1/notifications/sounds/{response.data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(default_storage.exists(stored))
        self.assertFalse(NotificationSound.objects.exists())

    def test_list_sounds(self):
        self._upload(filename='a.mp3')
        self._upload(filename='b.ogg')
        response = self.client.get('/api/v1/notifications/sounds/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.data], ['b.ogg', 'a.mp3'])
