"""Structured audit logging for password evaluations."""
