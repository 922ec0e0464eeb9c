"""Validation engine: type matching, field resolution, record and reference checks."""
