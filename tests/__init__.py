"""Test suite for formcontext.

This package contains tests for:
- FormState copy-on-write updates and serialization
- Field state machine (pristine -> touched, one way)
- Validation engine and common rules
- Event emission and subscriptions
- FormContext operations and the field binding adapter
- End-to-end form scenarios
"""
