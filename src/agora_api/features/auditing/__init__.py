"""Audit trail of authorization-checked requests."""
