"""
Testy endpointów API (Django test client).

Brama jest czyszczona przed i po każdym teście (get_gateway.cache_clear),
więc każdy test startuje z pustym InMemoryCaseGateway.
"""

import json

from django.conf import settings
from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import resolve
from freezegun import freeze_time

from caselog_app.services.case_gateway import get_gateway

JAN_5_0900_UTC = 1_736_067_600_000_000_000
JAN_5_0900_UTC_MS = 1_736_067_600_000


class ApiTestCase(TestCase):
    """Wspólny setup: zalogowany użytkownik z profilem agenta."""

    def setUp(self):
        get_gateway.cache_clear()
        self.user = User.objects.create_user(username='alice@example.com', password='testpass')
        self.client.force_login(self.user)
        get_gateway().save_profile('alice@example.com', 'Alice', '09:00-17:00')

    def tearDown(self):
        get_gateway.cache_clear()

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def entry(self, **overrides):
        values = {
            'task_type': 'pod',
            'start_time': '2025-01-05T14:30',
            'end_time': '2025-01-05T15:15',
            'notes': '',
        }
        values.update(overrides)
        return values


class ValidateRangeApiTestCase(ApiTestCase):

    def test_valid_range(self):
        response = self.post_json('/api/cases/validate-range', {
            'start_time': '2025-01-05T14:30', 'end_time': '2025-01-05T15:00',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'valid': True, 'error': None, 'reason': None})

    def test_reversed_range(self):
        response = self.post_json('/api/cases/validate-range', {
            'start_time': '2025-01-05T15:00', 'end_time': '2025-01-05T14:30',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['reason'], 'NonPositiveDuration')

    def test_missing_field(self):
        response = self.post_json('/api/cases/validate-range', {'start_time': '2025-01-05T15:00'})
        self.assertEqual(response.json()['reason'], 'MissingField')

    def test_invalid_json(self):
        response = self.client.post(
            '/api/cases/validate-range', data='not json', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)

    def test_requires_login(self):
        self.client.logout()
        response = self.post_json('/api/cases/validate-range', {})
        self.assertEqual(response.status_code, 302)


class CaseApiTestCase(ApiTestCase):

    def test_create_case(self):
        response = self.post_json('/api/cases/create', self.entry())

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        item = body['cases'][0]
        self.assertEqual(item['case']['agent_name'], 'Alice')  # Domyślnie z profilu
        self.assertEqual(item['case']['start_time'], JAN_5_0900_UTC)
        self.assertEqual(item['task_type_label'], 'POD')
        self.assertEqual(item['start_display'], 'Jan 5, 2025, 2:30 PM')
        self.assertEqual(item['start_local_input'], '2025-01-05T14:30')
        self.assertEqual(item['end_local_input'], '2025-01-05T15:15')
        self.assertEqual(item['duration_display'], '45m')

    def test_create_validation_error(self):
        response = self.post_json('/api/cases/create', self.entry(end_time='2025-01-05T14:00'))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Validation failed')
        self.assertEqual(response.json()['errors'], ['End time must be after start time'])
        self.assertEqual(get_gateway().list_cases(), [])

    def test_create_conflict(self):
        self.post_json('/api/cases/create', self.entry())

        response = self.post_json('/api/cases/create', self.entry(start_time='2025-01-05T15:00'))

        self.assertEqual(response.status_code, 409)
        self.assertEqual(len(get_gateway().list_cases()), 1)

    def test_create_without_profile(self):
        other = User.objects.create_user(username='bob@example.com', password='testpass')
        self.client.force_login(other)

        response = self.post_json('/api/cases/create', self.entry())

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], 'User profile not found')

    def test_unknown_field(self):
        response = self.post_json('/api/cases/create', self.entry(priority='high'))
        self.assertEqual(response.status_code, 400)

    def test_time_point_above_int64_is_rejected(self):
        """Test: TimePoint poza int64 -> 400 i lista case'ów nadal działa."""
        response = self.post_json('/api/cases/create', self.entry(
            start_time=10**30, end_time=10**30 + 60 * 10**9
        ))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(get_gateway().list_cases(), [])

        listing = self.client.get('/api/cases')
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.json()['cases'], [])

    def test_non_string_field_is_validation_error(self):
        response = self.post_json('/api/cases/create', self.entry(agent_name=123))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors'], ['Invalid value for agent_name: 123'])

    def test_non_string_emr_field_is_validation_error(self):
        response = self.post_json('/api/cases/create', self.entry(
            task_type='supportEMRTickets',
            case_type=5,
            assistance_needed='no',
            ticket_status='resolved',
            escalation_transfer_type='na',
        ))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors'], ['Invalid value for case_type: 5'])

    def test_edit_case(self):
        created = self.post_json('/api/cases/create', self.entry()).json()['cases'][0]['case']

        response = self.post_json(
            f"/api/cases/{created['id']}/edit", self.entry(end_time='2025-01-05T16:30')
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['cases'][0]['duration_display'], '2h 0m')

    def test_edit_missing_case(self):
        response = self.post_json('/api/cases/99/edit', self.entry())
        self.assertEqual(response.status_code, 404)

    def test_list_cases(self):
        self.post_json('/api/cases/create', self.entry())
        self.post_json('/api/cases/create', self.entry(
            start_time='2025-01-05T16:00', end_time='2025-01-05T16:30'
        ))
        self.post_json('/api/cases/create', self.entry(
            start_time='2025-01-05T10:00', end_time='2025-01-05T10:30'
        ))

        all_cases = self.client.get('/api/cases').json()['cases']
        self.assertEqual([item['case']['id'] for item in all_cases], [1, 2, 3])

        recent = self.client.get('/api/cases?recent=2').json()['cases']
        self.assertEqual([item['case']['id'] for item in recent], [3, 2])

    def test_list_invalid_recent(self):
        self.assertEqual(self.client.get('/api/cases?recent=abc').status_code, 400)
        self.assertEqual(self.client.get('/api/cases?recent=0').status_code, 400)


class BatchApiTestCase(ApiTestCase):

    def test_batch_create(self):
        response = self.post_json('/api/cases/batch', {'entries': [
            self.entry(agent_name='Alice'),
            self.entry(agent_name='Bob'),
        ]})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['cases']), 2)

    def test_batch_validation_errors(self):
        response = self.post_json('/api/cases/batch', {'entries': [
            self.entry(agent_name='Alice'),
            self.entry(agent_name='Bob', start_time=''),
        ]})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors'], ['Entry 2: Start and end times are required'])
        self.assertEqual(get_gateway().list_cases(), [])

    def test_empty_batch(self):
        response = self.post_json('/api/cases/batch', {'entries': []})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors'], ['Please fill in at least one complete entry'])

    def test_batch_non_string_field(self):
        response = self.post_json('/api/cases/batch', {'entries': [
            self.entry(agent_name='Alice'),
            self.entry(agent_name='Bob', notes=['a', 'b']),
        ]})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errors'], ["Entry 2: Invalid value for notes: ['a', 'b']"])
        self.assertEqual(get_gateway().list_cases(), [])

    def test_invalid_entries_format(self):
        response = self.post_json('/api/cases/batch', {'entries': 'nope'})
        self.assertEqual(response.status_code, 400)


class TimerApiTestCase(ApiTestCase):

    @freeze_time("2025-01-05 09:30:00")
    def test_timer_case(self):
        payload = self.entry(start_time=None, end_time=None)
        payload['started_at_ms'] = JAN_5_0900_UTC_MS

        response = self.post_json('/api/cases/timer', payload)

        self.assertEqual(response.status_code, 200)
        item = response.json()['cases'][0]
        self.assertEqual(item['start_local_input'], '2025-01-05T14:30')
        self.assertEqual(item['end_local_input'], '2025-01-05T15:00')

    def test_timer_not_started(self):
        response = self.post_json('/api/cases/timer', self.entry(start_time=None, end_time=None))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Please start the timer first')

    def test_timer_invalid_start(self):
        payload = self.entry()
        payload['started_at_ms'] = 'yesterday'
        response = self.post_json('/api/cases/timer', payload)
        self.assertEqual(response.status_code, 400)


class ProfileApiTestCase(ApiTestCase):

    def test_get_profile(self):
        response = self.client.get('/api/profile')
        self.assertEqual(response.json(), {
            'profile': {'username': 'Alice', 'shift_preferences': '09:00-17:00'}
        })

    def test_get_missing_profile(self):
        get_gateway.cache_clear()
        self.assertEqual(self.client.get('/api/profile').json(), {'profile': None})

    def test_save_profile(self):
        response = self.post_json('/api/profile', {
            'username': 'Alice A.', 'shift_preferences': ' 10:00-18:00 ',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(get_gateway().get_profile('alice@example.com').shift_preferences, '10:00-18:00')

    def test_save_profile_rejects_bad_shift(self):
        response = self.post_json('/api/profile', {'username': 'Alice', 'shift_preferences': '9-5'})
        self.assertEqual(response.status_code, 400)

    def test_save_profile_requires_username(self):
        response = self.post_json('/api/profile', {'username': ' '})
        self.assertEqual(response.status_code, 400)

    def test_save_profile_rejects_non_string_values(self):
        """Test: liczby zamiast tekstu -> 400, profil bez zmian."""
        for payload in [{'username': 5}, {'username': 'Alice', 'shift_preferences': 5}]:
            with self.subTest(payload=payload):
                response = self.post_json('/api/profile', payload)
                self.assertEqual(response.status_code, 400)

        self.assertEqual(get_gateway().get_profile('alice@example.com').shift_preferences, '09:00-17:00')


class StatsApiTestCase(ApiTestCase):

    @freeze_time("2025-01-05 12:00:00")
    def test_personal_stats(self):
        self.post_json('/api/cases/create', self.entry(
            start_time='2025-01-05T09:00', end_time='2025-01-05T11:00'
        ))
        self.post_json('/api/cases/create', self.entry(
            task_type='break30', start_time='2025-01-05T11:00', end_time='2025-01-05T11:30'
        ))
        # Case innego agenta nie jest liczony
        self.post_json('/api/cases/batch', {'entries': [self.entry(agent_name='Bob')]})

        response = self.client.get('/api/stats/personal')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['utilization'], 25.0)
        self.assertEqual(body['shift_progress'], 25)
        self.assertEqual(body['time_left'], '6h 0m')
        self.assertEqual(body['work_time'], '2h 0m')

    def test_personal_stats_without_profile(self):
        get_gateway.cache_clear()
        self.assertEqual(self.client.get('/api/stats/personal').status_code, 403)

    def test_analytics(self):
        self.post_json('/api/cases/create', self.entry())
        self.post_json('/api/cases/create', self.entry(
            task_type='break15', start_time='2025-01-05T16:00', end_time='2025-01-05T16:15'
        ))

        body = self.client.get('/api/stats/analytics').json()

        self.assertEqual(body['work_by_type'], {'POD': 45.0})
        self.assertEqual(body['break_by_type'], {'Break - 15': 15.0})
        self.assertEqual(body['total_minutes'], 60)
        self.assertEqual(body['case_count'], 2)

    @freeze_time("2025-01-05 09:30:00")
    def test_utilization_stats(self):
        payload = self.entry(start_time=None, end_time=None)
        payload['started_at_ms'] = JAN_5_0900_UTC_MS
        self.post_json('/api/cases/timer', payload)

        response = self.client.get(f'/api/stats/utilization?period={JAN_5_0900_UTC + 3600 * 10**9}')

        self.assertEqual(response.json(), {'daily': 1800, 'weekly': 1800})

    def test_utilization_stats_invalid_period(self):
        self.assertEqual(self.client.get('/api/stats/utilization').status_code, 400)
        self.assertEqual(self.client.get('/api/stats/utilization?period=soon').status_code, 400)


class SettingsPackageTestCase(TestCase):

    def test_project_package_name(self):
        """Test: ustawienia i routing z pakietu caselog_config (nie ogólnego "config")."""
        self.assertEqual(settings.ROOT_URLCONF, 'caselog_config.urls')
        self.assertEqual(resolve('/api/profile').func.__module__, 'caselog_app.api.views_profile')
