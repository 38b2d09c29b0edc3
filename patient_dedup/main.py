#!/usr/bin/env python3
"""
Patient Duplicate Checker - Main Entrypoint

Checks a patient record extracted from an intake form against the existing
patient records before it is saved: reports likely duplicates, ranked
partial matches and country-specific validation errors.

This is the command line entrypoint for the deduplication engine.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import MatchingConfig
from .core.country_rules import validate_record
from .core.data_models import Country, DuplicateAnalysisResult, PatientRecord
from .core.duplicate_checker import DuplicateChecker
from .core.exceptions import InvalidInputError, StoreUnavailableError
from .reporting.audit_logger import DuplicateAuditLogger, generate_analysis_report
from .store.http_store import HttpRecordStore, default_api_url
from .store.memory_store import InMemoryRecordStore
from .utils.normalizers import parse_key_value

EXIT_OK = 0
EXIT_STORE_UNAVAILABLE = 1
EXIT_INVALID_INPUT = 2


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    format_str = '%(asctime)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="patient-dedup",
        description="Patient Duplicate Checker - detect duplicate patients before intake",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze --store-csv patients.csv --name "John Smith" --age 42 --country UK --id nhs_number=1234567890
  %(prog)s match --api-url https://localhost:5000/api --token abc123 --name "Jane Doe" --country US
  %(prog)s validate --name "Taro Yamada" --age 30 --country Japan
        """
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    for command, help_text in (
        ('analyze', 'Check a record for duplicates and validation errors'),
        ('match', 'Find exact and ranked partial matches for a record'),
        ('validate', 'Validate a record against its country rules'),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        _add_record_arguments(sub)
        if command != 'validate':
            _add_store_arguments(sub)
        sub.add_argument('--verbose', action='store_true',
                         help='Enable verbose logging')

    return parser


def _add_record_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--name', help='Patient name')
    parser.add_argument('--age', type=int, help='Patient age in years')
    parser.add_argument('--country', choices=[c.value for c in Country],
                        help='Patient country')
    parser.add_argument('--id', dest='identifiers', action='append', default=[],
                        metavar='KEY=VALUE', help='Identifier, e.g. nhs_number=1234567890')
    parser.add_argument('--detail', dest='details', action='append', default=[],
                        metavar='KEY=VALUE', help='Country form field, e.g. address="1 High St"')
    parser.add_argument('--source-url', help='Form the record was extracted from')


def _add_store_arguments(parser: argparse.ArgumentParser):
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--store-csv', help='CSV file of existing patient records')
    source.add_argument('--api-url', nargs='?', const=default_api_url(),
                        help=f'Patient API root (default when given without a value: {default_api_url()})')
    parser.add_argument('-t', '--token', help='Bearer token for API authentication')
    parser.add_argument('--insecure', action='store_true',
                        help='Skip TLS certificate verification for the API')
    parser.add_argument('--timeout', type=float,
                        help='Store timeout in seconds (default: PATIENT_DEDUP_STORE_TIMEOUT or 30)')
    parser.add_argument('--threshold', type=float,
                        help='Partial match threshold (default: 0.5)')
    parser.add_argument('--report', action='store_true',
                        help='Print a human-readable report to stderr')


def record_from_args(args: argparse.Namespace) -> PatientRecord:
    """Build the submitted record from command line arguments."""
    return PatientRecord(
        name=args.name,
        age=args.age,
        country=args.country,
        identifiers=dict(parse_key_value(item) for item in args.identifiers),
        details=dict(parse_key_value(item) for item in args.details),
        source_url=args.source_url
    )


def config_from_args(args: argparse.Namespace) -> MatchingConfig:
    """Build the matching configuration, flags overriding the environment."""
    config = MatchingConfig.from_env()
    overrides = {}
    if args.timeout is not None:
        overrides["store_timeout"] = args.timeout
    if args.threshold is not None:
        overrides["partial_match_threshold"] = args.threshold
    return replace(config, **overrides)


def store_from_args(args: argparse.Namespace):
    """Open the record store selected on the command line."""
    if args.store_csv:
        if not Path(args.store_csv).exists():
            raise FileNotFoundError(f"Store file not found: {args.store_csv}")
        return InMemoryRecordStore.from_csv(args.store_csv)

    return HttpRecordStore(args.api_url, bearer_token=args.token, verify=not args.insecure)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entrypoint for the duplicate checker."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        record = record_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if args.command == 'validate':
        errors = validate_record(record)
        print(json.dumps({'validation_errors': errors}, indent=2, ensure_ascii=False))
        return EXIT_OK

    try:
        config = config_from_args(args)
        store = store_from_args(args)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    checker = DuplicateChecker(store, config)
    audit = DuplicateAuditLogger()

    try:
        if args.command == 'analyze':
            analysis = checker.analyze_duplicates(record)
            audit.log_analysis(record, analysis)
            output = analysis.to_dict()
            if args.report:
                print(generate_analysis_report(record, analysis), file=sys.stderr)
        else:
            matches = checker.find_matches(record)
            audit.log_matches(record, matches)
            output = matches.to_dict()
            if args.report:
                analysis = DuplicateAnalysisResult(
                    duplicates=matches.exact_matches,
                    validation_errors=validate_record(record)
                )
                print(generate_analysis_report(record, analysis, matches), file=sys.stderr)
    except InvalidInputError as e:
        logging.error(f"Invalid input: {e}")
        return EXIT_INVALID_INPUT
    except StoreUnavailableError as e:
        logging.error(f"Record store unavailable: {e}")
        return EXIT_STORE_UNAVAILABLE

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
