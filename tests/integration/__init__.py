"""Integration tests: full pipeline scenarios, the HTTP API, and the live provider.

Everything in this directory is marked `integration` by tests/conftest.py.
The live provider tests skip themselves when no key is configured.

Run integration tests:
    pytest tests/integration/ -v -s -m integration

Skip integration tests during regular testing:
    pytest tests/ --ignore=tests/integration/
"""
