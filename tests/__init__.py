"""
Unit tests for the portfolio contact backend.

Test Organization:
- tests/ - services and building blocks (email client, event log, rate limiter, store, settings)
- contact/tests.py - API tests for the contact and admin endpoints
"""
