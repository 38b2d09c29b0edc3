"""
Audit logging and reporting for duplicate detection decisions.

Provides structured log lines suitable for an intake audit trail and a
human-readable report of a single analysis.
"""

import logging
from datetime import datetime
from typing import Optional

from ..core.data_models import DuplicateAnalysisResult, MatchResult, PatientRecord


class DuplicateAuditLogger:
    """
    Audit logging for duplicate detection decisions.

    Every analysis and match search produces one log line naming the
    decision, so intake outcomes can be traced afterwards.
    """

    def __init__(self, logger_name: str = "duplicate_audit"):
        """
        Initialize the audit logger.

        Args:
            logger_name: Name for the logger instance
        """
        self.logger = logging.getLogger(logger_name)

    def log_analysis(self, record: PatientRecord, result: DuplicateAnalysisResult,
                     source: str = "") -> None:
        """
        Log a duplicate analysis decision.

        Args:
            record: Analyzed record
            result: Result of the analysis
            source: Where the record came from (form URL) for the audit trail
        """
        log_parts = []

        if result.is_duplicate:
            log_parts.append("DUPLICATE_FOUND")
        else:
            log_parts.append("NO_DUPLICATE")

        if result.validation_errors:
            log_parts.append("VALIDATION_FAILED")

        log_parts.append(f"Patient: {record.name or '<no name>'}")
        if record.country:
            log_parts.append(f"Country: {record.country.value}")

        source = source or record.source_url or ""
        if source:
            log_parts.append(f"Source: {source}")

        if result.duplicates:
            log_parts.append(f"Duplicates: {', '.join(d.record_id for d in result.duplicates)}")

        if result.suggestions:
            log_parts.append("Suggestions: " + ", ".join(
                f"{s.field}='{s.suggested_value}' ({s.confidence:.1%})" for s in result.suggestions))

        if result.validation_errors:
            log_parts.append(f"Errors: {'; '.join(result.validation_errors)}")

        log_level = logging.WARNING if result.is_duplicate or result.validation_errors else logging.INFO
        self.logger.log(log_level, " - ".join(log_parts))

    def log_matches(self, record: PatientRecord, result: MatchResult) -> None:
        """
        Log a match search outcome.

        Args:
            record: Searched record
            result: Result of the search
        """
        best = result.partial_matches[0].score if result.partial_matches else 0.0
        self.logger.info(
            f"MATCHES - Patient: {record.name or '<no name>'} - "
            f"Exact: {len(result.exact_matches)} - "
            f"Partial: {len(result.partial_matches)} - "
            f"Best partial score: {best:.1%}"
        )


def generate_analysis_report(record: PatientRecord,
                             analysis: DuplicateAnalysisResult,
                             matches: Optional[MatchResult] = None) -> str:
    """
    Generate a human-readable duplicate analysis report.

    Args:
        record: Analyzed record
        analysis: Duplicate analysis result
        matches: Optional match search result for the same record

    Returns:
        Formatted report
    """
    report_lines = []

    # Header
    report_lines.extend([
        "=" * 70,
        "PATIENT DUPLICATE ANALYSIS REPORT",
        "=" * 70,
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        ""
    ])

    report_lines.extend([
        "SUBMITTED RECORD:",
        f"  Name: {record.name or '-'}",
        f"  Age: {record.age if record.age is not None else '-'}",
        f"  Country: {record.country.value if record.country else '-'}",
    ])
    for key, value in sorted(record.identifiers.items()):
        report_lines.append(f"  {key}: {value}")
    report_lines.append("")

    # Duplicate decision
    if analysis.is_duplicate:
        report_lines.append(f"DUPLICATE STATUS: DUPLICATE ({len(analysis.duplicates)} existing records)")
        for i, duplicate in enumerate(analysis.duplicates[:10], 1):
            report_lines.append(
                f"{i:2d}. {duplicate.record_id} | {duplicate.name or '-'} | "
                f"age {duplicate.age} | {duplicate.status.value}")
        if len(analysis.duplicates) > 10:
            report_lines.append(f"    ... and {len(analysis.duplicates) - 10} more records")
    else:
        report_lines.append("DUPLICATE STATUS: NO DUPLICATE FOUND")
    report_lines.append("")

    if analysis.suggestions:
        report_lines.append("SUGGESTED CORRECTIONS:")
        for suggestion in analysis.suggestions:
            report_lines.append(
                f"  {suggestion.field}: '{suggestion.suggested_value}' "
                f"(confidence {suggestion.confidence:.1%})")
        report_lines.append("")

    if analysis.validation_errors:
        report_lines.append(f"VALIDATION ERRORS ({len(analysis.validation_errors)}):")
        for error in analysis.validation_errors:
            report_lines.append(f"  • {error}")
    else:
        report_lines.append("VALIDATION: OK")
    report_lines.append("")

    if matches is not None and matches.partial_matches:
        report_lines.extend([
            f"PARTIAL MATCHES ({len(matches.partial_matches)}):",
            "-" * 50
        ])
        for i, candidate in enumerate(matches.partial_matches[:10], 1):
            report_lines.append(
                f"{i:2d}. {candidate.record.record_id:<10} {candidate.record.name or '-':<25} | "
                f"Score: {candidate.score:.1%}")
        if len(matches.partial_matches) > 10:
            report_lines.append(f"    ... and {len(matches.partial_matches) - 10} more candidates")
        report_lines.append("")

    report_lines.append("=" * 70)

    return "\n".join(report_lines)
