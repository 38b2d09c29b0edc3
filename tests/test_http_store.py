"""
Tests for the patient API record store

The HTTP session is mocked; these tests check the request shape and the
mapping of transport and API failures to StoreUnavailableError.
"""

import unittest
from unittest.mock import Mock

import requests

from patient_dedup.core.data_models import Country
from patient_dedup.core.exceptions import StoreUnavailableError
from patient_dedup.store.base import DemographicClause, IdentifierClause
from patient_dedup.store.http_store import HttpRecordStore, default_api_url


def api_response(status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestHttpRecordStore(unittest.TestCase):
    """Test cases for HttpRecordStore"""

    def setUp(self):
        """Set up test fixtures"""
        self.session = Mock()
        self.store = HttpRecordStore('https://localhost:5000/api/', bearer_token='abc123',
                                     session=self.session)
        self.record_json = {
            '_id': 'P1',
            'name': 'John Smith',
            'age': 42,
            'country': 'UK',
            'identifiers': {'nhs_number': '1234567890'},
            'status': 'verified',
            'createdAt': '2024-01-15T10:00:00Z'
        }

    def test_default_api_url(self):
        """Test the default API root"""
        self.assertEqual(default_api_url(), 'https://localhost:5000/api')
        self.assertEqual(default_api_url('records.local', '8443'), 'https://records.local:8443/api')

    def test_find_any_request(self):
        """Test the filter query request"""
        self.session.post.return_value = api_response(body={'success': True, 'data': [self.record_json]})

        result = self.store.find_any([
            IdentifierClause('nhs_number', '1234567890'),
            DemographicClause('John Smith', 42, Country.UK),
        ], timeout=5.0)

        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].record_id, 'P1')
        self.assertEqual(result[0].identifiers, {'nhs_number': '1234567890'})

        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], 'https://localhost:5000/api/patients/query')
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer abc123')
        self.assertEqual(kwargs['timeout'], 5.0)
        self.assertTrue(kwargs['verify'])
        self.assertEqual(kwargs['json'], {'clauses': [
            {'type': 'identifier', 'key': 'nhs_number', 'value': '1234567890'},
            {'type': 'demographic', 'name': 'John Smith', 'age': 42, 'country': 'UK'},
        ]})

    def test_find_any_rejects_empty_filter(self):
        """Test that an empty filter is never sent"""
        with self.assertRaises(ValueError):
            self.store.find_any([])
        self.session.post.assert_not_called()

    def test_search_text_request(self):
        """Test the text search request"""
        self.session.post.return_value = api_response(body={'success': True, 'data': []})

        result = self.store.search_text('John Smith', Country.UK, exclude_ids={'P2', 'P1'}, limit=50)

        self.assertEqual(result, [])
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], 'https://localhost:5000/api/patients/search')
        self.assertEqual(kwargs['json'], {
            'text': 'John Smith',
            'country': 'UK',
            'exclude_ids': ['P1', 'P2'],
            'limit': 50
        })

    def test_timeout(self):
        """Test that a request timeout is reported as store unavailable"""
        self.session.post.side_effect = requests.Timeout("read timed out")

        with self.assertRaises(StoreUnavailableError):
            self.store.search_text('John', None, exclude_ids=set(), limit=10)

    def test_connection_error(self):
        """Test that a connection failure is reported as store unavailable"""
        self.session.post.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(StoreUnavailableError):
            self.store.find_any([IdentifierClause('mrn', 'MRN-1')])

    def test_error_status(self):
        """Test that a non-200 status is reported as store unavailable"""
        self.session.post.return_value = api_response(status_code=500, body={})

        with self.assertRaises(StoreUnavailableError):
            self.store.find_any([IdentifierClause('mrn', 'MRN-1')])

    def test_any_2xx_status_is_accepted(self):
        """Test that success statuses other than 200 are accepted"""
        self.session.post.return_value = api_response(
            status_code=201, body={'success': True, 'data': [self.record_json]})

        result = self.store.find_any([IdentifierClause('nhs_number', '1234567890')])

        self.assertEqual([r.record_id for r in result], ['P1'])

    def test_redirect_status(self):
        """Test that a 3xx status is reported as store unavailable"""
        self.session.post.return_value = api_response(status_code=302, body={'success': True})

        with self.assertRaises(StoreUnavailableError):
            self.store.find_any([IdentifierClause('mrn', 'MRN-1')])

    def test_api_error_envelope(self):
        """Test that success false is reported as store unavailable"""
        self.session.post.return_value = api_response(
            body={'success': False, 'error': 'database offline'})

        with self.assertRaises(StoreUnavailableError) as ctx:
            self.store.find_any([IdentifierClause('mrn', 'MRN-1')])
        self.assertIn('database offline', str(ctx.exception))

    def test_invalid_json(self):
        """Test that an unparseable body is reported as store unavailable"""
        response = api_response()
        response.json.side_effect = ValueError("no JSON")
        self.session.post.return_value = response

        with self.assertRaises(StoreUnavailableError):
            self.store.find_any([IdentifierClause('mrn', 'MRN-1')])

    def test_malformed_record(self):
        """Test that records without identity are reported as store unavailable"""
        self.session.post.return_value = api_response(
            body={'success': True, 'data': [{'name': 'No Identity'}]})

        with self.assertRaises(StoreUnavailableError):
            self.store.find_any([IdentifierClause('mrn', 'MRN-1')])

    def test_insecure_client(self):
        """Test that certificate verification can be disabled"""
        store = HttpRecordStore('https://localhost:5000/api', verify=False, session=self.session)
        self.session.post.return_value = api_response(body={'success': True, 'data': []})

        store.find_any([IdentifierClause('mrn', 'MRN-1')])

        self.assertFalse(self.session.post.call_args[1]['verify'])
        self.assertNotIn('Authorization', store.headers)


if __name__ == '__main__':
    unittest.main()
