"""Test fixtures for mentionlink tests.

Provides builders for:
- Candidate contacts and extracted mentions
- contact_mentions rows and mocked SQLAlchemy results
- A fake async session factory
"""
