"""Test suite for dynaform.

This package contains tests for:
- Field specification and form schema construction (invariants, defaults)
- Validation engine (per-field rules, cross-field rules, files, idempotence)
- Field renderer (type dispatch, display contract, change reporting)
- Form state machine and event system
- Form controller (edit cycle, submission, no double-submit)
- Preset login, registration and contact forms
- Settings and logging configuration
"""
