"""
Unit tests for country_rules.py module
Tests the country rule table and record validation
"""

import unittest

from patient_dedup.core.country_rules import (
    COUNTRY_RULES,
    unique_identifier_keys,
    valid_detail_keys,
    valid_identifier_keys,
    validate_record
)
from patient_dedup.core.data_models import Country, PatientRecord


class TestValidateRecord(unittest.TestCase):
    """Test cases for validate_record"""

    def test_uk_missing_nhs_number(self):
        """Test that a UK record without NHS number gets exactly one error"""
        record = PatientRecord(name='John Smith', age=42, country=Country.UK)
        self.assertEqual(validate_record(record), ['NHS Number is required'])

    def test_uk_invalid_nhs_number(self):
        """Test the 10-digit NHS number format"""
        record = PatientRecord(name='John Smith', age=42, country=Country.UK,
                               identifiers={'nhs_number': '12345'})
        self.assertEqual(validate_record(record), ['NHS Number must be 10 digits'])

        record = PatientRecord(name='John Smith', age=42, country=Country.UK,
                               identifiers={'nhs_number': '12345678901'})
        self.assertEqual(validate_record(record), ['NHS Number must be 10 digits'])

    def test_uk_compliant(self):
        """Test a compliant UK record"""
        record = PatientRecord(name='John Smith', age=42, country=Country.UK,
                               identifiers={'nhs_number': '1234567890'},
                               details={'address': '1 High Street', 'gp_name': 'Dr Brown'})
        self.assertEqual(validate_record(record), [])

    def test_us_errors_in_declared_order(self):
        """Test that errors follow name, age, then identifier order"""
        record = PatientRecord(country=Country.US, identifiers={'ssn': '123456789'})
        self.assertEqual(validate_record(record), [
            'Name is required',
            'Age is required',
            'Medical Record Number is required',
            'SSN must be in format XXX-XX-XXXX',
        ])

    def test_us_ssn_optional(self):
        """Test that SSN is only checked when present"""
        record = PatientRecord(name='Jane Doe', age=35, country=Country.US,
                               identifiers={'mrn': 'MRN-001'})
        self.assertEqual(validate_record(record), [])

        record = PatientRecord(name='Jane Doe', age=35, country=Country.US,
                               identifiers={'mrn': 'MRN-001', 'ssn': '123-45-6789'})
        self.assertEqual(validate_record(record), [])

    def test_india_requires_hospital_uid(self):
        """Test the India required identifier"""
        record = PatientRecord(name='Priya Sharma', age=29, country=Country.INDIA,
                               identifiers={'insurance_member_id': 'INS-9'})
        self.assertEqual(validate_record(record), ['Hospital UID/Aadhaar is required'])

    def test_japan_requires_hospital_patient_id(self):
        """Test the Japan required identifier"""
        record = PatientRecord(name='山田 太郎', age=30, country=Country.JAPAN)
        self.assertEqual(validate_record(record), ['Hospital Patient ID is required'])

        record = PatientRecord(name='山田 太郎', age=30, country=Country.JAPAN,
                               identifiers={'hospital_patient_id': 'JP-0001'})
        self.assertEqual(validate_record(record), [])

    def test_missing_country(self):
        """Test that a record without country cannot be checked further"""
        record = PatientRecord(name='John Smith', age=42)
        self.assertEqual(validate_record(record), ['Country is required'])

    def test_age_out_of_range(self):
        """Test the persisted age range"""
        for age in (0, 121, -5):
            record = PatientRecord(name='John Smith', age=age, country=Country.UK,
                                   identifiers={'nhs_number': '1234567890'})
            self.assertEqual(validate_record(record), ['Age must be between 1 and 120'])

        for age in (1, 120):
            record = PatientRecord(name='John Smith', age=age, country=Country.UK,
                                   identifiers={'nhs_number': '1234567890'})
            self.assertEqual(validate_record(record), [])

    def test_validation_is_stable(self):
        """Test that repeated validation gives the same list"""
        record = PatientRecord(country=Country.US, identifiers={'ssn': 'bad'})
        self.assertEqual(validate_record(record), validate_record(record))


class TestRuleTable(unittest.TestCase):
    """Test cases for the rule table lookups"""

    def test_every_country_has_a_rule(self):
        """Test that all supported countries are covered"""
        self.assertEqual(set(COUNTRY_RULES), set(Country))

    def test_every_country_has_a_required_unique_identifier(self):
        """Test that each jurisdiction declares a national identifier"""
        for rule in COUNTRY_RULES.values():
            required_unique = [r for r in rule.identifiers if r.required and r.unique]
            self.assertEqual(len(required_unique), 1, rule.country)

    def test_unique_keys(self):
        """Test unique identifier keys per country"""
        self.assertEqual(unique_identifier_keys(Country.UK), {'nhs_number'})
        self.assertEqual(unique_identifier_keys(Country.US), {'mrn', 'ssn'})
        self.assertEqual(unique_identifier_keys(None), {
            'nhs_number', 'mrn', 'ssn', 'hospital_uid_aadhaar', 'hospital_patient_id'})

    def test_valid_keys(self):
        """Test identifier and detail keys per country"""
        self.assertIn('nhs_insurance_number', valid_identifier_keys(Country.UK))
        self.assertNotIn('mrn', valid_identifier_keys(Country.UK))
        self.assertIn('mrn', valid_identifier_keys(None))
        self.assertEqual(valid_detail_keys(Country.JAPAN), {'prefecture_code'})
        self.assertIn('address', valid_detail_keys(None))


if __name__ == '__main__':
    unittest.main()
