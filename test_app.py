# test_app.py

import unittest
import os
import json
import tempfile
os.environ.setdefault('DATABASE_URL', 'sqlite://')
from app import app, db

class ScheduleDataTestCase(unittest.TestCase):
    """Test suite for the schedule data endpoints."""

    def setUp(self):
        """Set up a test client and point the app at a temporary schedule document."""
        self.app = app.test_client()
        self.app.testing = True
        fd, self.test_csv_file = tempfile.mkstemp(suffix='.csv')
        os.close(fd)
        app.config['SCHEDULE_CSV_PATH'] = self.test_csv_file
        app.config['SCHEDULE_FAIL_ON_ROW_ERRORS'] = False
        app.config['SCHEDULE_DEFAULT_STATUS'] = 'SCHEDULED'

    def tearDown(self):
        """Clean up the test schedule document after each test."""
        if os.path.exists(self.test_csv_file):
            os.remove(self.test_csv_file)

    def _create_test_csv(self, content):
        with open(self.test_csv_file, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

    def test_01_schedule_data(self):
        """A valid document comes back as normalized schedules."""
        self._create_test_csv("employee,date,shift,status\nAlice,2024-01-05,Morning,confirmed\n")
        response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.data)
        self.assertEqual(data['rowErrors'], [])
        self.assertEqual(len(data['schedules']), 1)
        schedule = data['schedules'][0]
        self.assertEqual(schedule['employee'], 'Alice')
        self.assertEqual(schedule['date'], '2024-01-05')
        self.assertEqual(schedule['shift'], 'Morning')
        self.assertEqual(schedule['status'], 'CONFIRMED')
        self.assertEqual(schedule['statusLabel'], 'Confirmed')

    def test_02_row_errors_are_reported_not_fatal(self):
        """A row missing its shift is left out and listed in rowErrors."""
        self._create_test_csv("employee,date,shift,status\nAlice,2024-01-05,Morning,confirmed\nBob,2024-01-06,,scheduled\n")
        response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.data)
        self.assertEqual([s['employee'] for s in data['schedules']], ['Alice'])
        self.assertEqual(data['rowErrors'], [{"row": 1, "error": "MissingField", "column": "shift", "message": "Missing required field 'shift'."}])

    def test_03_empty_document(self):
        self._create_test_csv("employee,date,shift,status\n")
        response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.data)['schedules'], [])

    def test_04_failures_return_generic_500(self):
        """Unreadable and malformed documents both surface as a generic 500."""
        os.remove(self.test_csv_file)
        with self.assertLogs(level='ERROR'):
            response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 500)
        self.assertEqual(json.loads(response.data), {"error": "Failed to load schedule data"})
        self._create_test_csv("employee,,shift\nAlice,2024-01-05,Morning\n")
        with self.assertLogs(level='ERROR'):
            response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 500)
        app.config['SCHEDULE_FAIL_ON_ROW_ERRORS'] = True
        self._create_test_csv("employee,date,shift\nBob,2024-01-06,\n")
        with self.assertLogs(level='ERROR'):
            response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 500)

    def test_05_summary_and_statuses(self):
        self._create_test_csv("employee,date,shift,status\nAlice,2024-01-05,0700-1900,in progress\n")
        response = self.app.get('/api/schedule-data/summary')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'text/plain')
        self.assertIn('In Progress', response.get_data(as_text=True))
        response = self.app.get('/api/schedule-statuses')
        values = [s['value'] for s in json.loads(response.data)]
        self.assertIn('UNKNOWN', values)
        self.assertIn('CANCELLED', values)

    def test_06_loosely_written_default_status(self):
        """A lower-case configured default status still resolves."""
        app.config['SCHEDULE_DEFAULT_STATUS'] = 'confirmed'
        self._create_test_csv("employee,date,shift\nAlice,2024-01-05,Morning\n")
        response = self.app.get('/api/schedule-data')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.data)['schedules'][0]['status'], 'CONFIRMED')

class PreferencesTestCase(unittest.TestCase):
    """Test suite for schedule preference storage."""

    def setUp(self):
        self.app = app.test_client()
        self.app.testing = True
        with app.app_context():
            db.create_all()

    def tearDown(self):
        with app.app_context():
            db.session.remove()
            db.drop_all()

    def _post(self, payload):
        return self.app.post('/api/preferences', data=json.dumps(payload), content_type='application/json')

    def test_01_create_and_list_by_priority(self):
        response = self._post({'employee': 'Alice', 'constraintType': 'PREFERRED_DAYS_OFF', 'description': 'Fridays off', 'parameters': {'days': ['FRI']}, 'priority': 1})
        self.assertEqual(response.status_code, 201)
        self._post({'employee': 'Alice', 'constraintType': 'TIME_OF_DAY', 'description': 'Mornings only', 'priority': 5})
        self._post({'employee': 'Bob', 'constraintType': 'TIME_OF_DAY', 'description': 'Nights'})
        response = self.app.get('/api/preferences?employee=Alice')
        data = json.loads(response.data)
        self.assertEqual([p['description'] for p in data], ['Mornings only', 'Fridays off'])
        self.assertEqual(data[1]['parameters'], {'days': ['FRI']})

    def test_02_validation(self):
        self.assertEqual(self._post({'employee': 'Alice', 'description': 'x'}).status_code, 400)
        self.assertEqual(self._post({'employee': 'Alice', 'constraintType': 'NAPS', 'description': 'x'}).status_code, 400)
        self.assertEqual(self._post({'employee': 'Alice', 'constraintType': 'TIME_OF_DAY', 'description': 'x', 'priority': 'high'}).status_code, 400)
        self.assertEqual(self.app.get('/api/preferences').status_code, 400)

    def test_03_delete(self):
        pref_id = json.loads(self._post({'employee': 'Alice', 'constraintType': 'DAY_PAIRING', 'description': 'Sat with Sun'}).data)['id']
        self.assertEqual(self.app.delete(f'/api/preferences/{pref_id}').status_code, 200)
        self.assertEqual(self.app.delete(f'/api/preferences/{pref_id}').status_code, 404)

    def test_04_rejects_wrongly_typed_bodies(self):
        response = self.app.post('/api/preferences', data=json.dumps([{'employee': 'Alice'}]), content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self._post({'employee': 'Alice', 'constraintType': 'TIME_OF_DAY', 'description': {'text': 'x'}}).status_code, 400)
        self.assertEqual(self._post({'employee': ['Alice'], 'constraintType': 'TIME_OF_DAY', 'description': 'x'}).status_code, 400)
        self.assertEqual(self._post({'employee': 'Alice', 'constraintType': 'TIME_OF_DAY', 'description': 'x', 'notes': 5}).status_code, 400)
        self.assertEqual(self.app.post('/api/preferences', data='not json', content_type='application/json').status_code, 400)

if __name__ == '__main__':
    unittest.main()
