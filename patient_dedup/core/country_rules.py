"""
Country-specific field rules for patient intake.

Each supported jurisdiction declares which identifiers a record may carry,
which of them identify a patient uniquely, which are required, and the
format patterns their values must follow. The same table tells the rest of
the engine which identifier keys are valid for a country.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from .data_models import Country, PatientRecord

MIN_AGE = 1
MAX_AGE = 120


@dataclass(frozen=True)
class IdentifierRule:
    """Declaration of one country-scoped identifier."""
    key: str
    label: str
    required: bool = False
    unique: bool = False
    pattern: Optional[str] = None
    format_message: Optional[str] = None

    def matches_format(self, value: str) -> bool:
        if not self.pattern:
            return True
        return re.fullmatch(self.pattern, value) is not None


@dataclass(frozen=True)
class CountryRule:
    """Required fields and identifier rules for one jurisdiction."""
    country: Country
    identifiers: Tuple[IdentifierRule, ...]
    detail_keys: Tuple[str, ...] = ()

    @property
    def identifier_keys(self) -> FrozenSet[str]:
        return frozenset(rule.key for rule in self.identifiers)

    @property
    def unique_keys(self) -> FrozenSet[str]:
        return frozenset(rule.key for rule in self.identifiers if rule.unique)


COUNTRY_RULES: Dict[Country, CountryRule] = {
    Country.UK: CountryRule(
        country=Country.UK,
        identifiers=(
            IdentifierRule('nhs_number', 'NHS Number', required=True, unique=True,
                           pattern=r'[0-9]{10}', format_message='must be 10 digits'),
            IdentifierRule('nhs_insurance_number', 'NHS Insurance Number'),
        ),
        detail_keys=('address', 'gp_name')
    ),
    Country.US: CountryRule(
        country=Country.US,
        identifiers=(
            IdentifierRule('mrn', 'Medical Record Number', required=True, unique=True),
            IdentifierRule('ssn', 'SSN', unique=True,
                           pattern=r'[0-9]{3}-[0-9]{2}-[0-9]{4}',
                           format_message='must be in format XXX-XX-XXXX'),
            IdentifierRule('health_insurance_policy_number', 'Health Insurance Policy Number'),
        ),
        detail_keys=('primary_insurance_provider',)
    ),
    Country.INDIA: CountryRule(
        country=Country.INDIA,
        identifiers=(
            IdentifierRule('hospital_uid_aadhaar', 'Hospital UID/Aadhaar',
                           required=True, unique=True),
            IdentifierRule('insurance_member_id', 'Insurance Member ID'),
        ),
        detail_keys=('insurance_company_name',)
    ),
    Country.JAPAN: CountryRule(
        country=Country.JAPAN,
        identifiers=(
            IdentifierRule('hospital_patient_id', 'Hospital Patient ID',
                           required=True, unique=True),
            IdentifierRule('national_health_insurance_card_number',
                           'National Health Insurance Card Number'),
        ),
        detail_keys=('prefecture_code',)
    ),
}


def get_country_rule(country: Country) -> CountryRule:
    """Get the rule table entry for a country."""
    return COUNTRY_RULES[country]


def valid_identifier_keys(country: Optional[Country]) -> FrozenSet[str]:
    """
    Get the identifier keys a record may carry.

    Args:
        country: Record jurisdiction, or None when it is not known yet

    Returns:
        Keys declared for the country, or for any country when None
    """
    if country is not None:
        return COUNTRY_RULES[country].identifier_keys
    return frozenset().union(*(rule.identifier_keys for rule in COUNTRY_RULES.values()))


def valid_detail_keys(country: Optional[Country]) -> FrozenSet[str]:
    """Get the non-identifying form fields a record may carry."""
    if country is not None:
        return frozenset(COUNTRY_RULES[country].detail_keys)
    return frozenset(key for rule in COUNTRY_RULES.values() for key in rule.detail_keys)


def unique_identifier_keys(country: Optional[Country]) -> FrozenSet[str]:
    """Get the identifier keys that identify a patient on their own."""
    if country is not None:
        return COUNTRY_RULES[country].unique_keys
    return frozenset().union(*(rule.unique_keys for rule in COUNTRY_RULES.values()))


def validate_record(record: PatientRecord) -> List[str]:
    """
    Validate a record against its country's required-field rules.

    Errors are emitted in the table's declared order: name, age, then each
    identifier rule. Missing required identifiers and values failing their
    format pattern produce one message each.

    Args:
        record: Submitted patient record

    Returns:
        Human-readable validation errors, empty when compliant
    """
    if record.country is None:
        return ['Country is required']

    errors = []

    if not record.name:
        errors.append('Name is required')

    if record.age is None:
        errors.append('Age is required')
    elif not MIN_AGE <= record.age <= MAX_AGE:
        errors.append(f'Age must be between {MIN_AGE} and {MAX_AGE}')

    for rule in get_country_rule(record.country).identifiers:
        value = record.identifiers.get(rule.key)
        if value is None:
            if rule.required:
                errors.append(f'{rule.label} is required')
        elif not rule.matches_format(value):
            errors.append(f'{rule.label} {rule.format_message}')

    return errors
