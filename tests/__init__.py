"""
MonadVerify Test Suite
======================

Test organization:
- tests/unit/          - Unit tests (mock ledger, no network)
- tests/services/      - HTTP service tests

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
"""
