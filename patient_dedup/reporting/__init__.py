"""Audit logging and reporting."""
